"""SQLAlchemy models for Customer Sync."""

from customer_sync.models.customer import Customer
from customer_sync.models.device import Device
from customer_sync.models.activity import Activity, ActivityType
from customer_sync.models.order import Order, OrderItem
from customer_sync.models.booking import ServiceBooking

__all__ = [
    "Customer",
    "Device",
    "Activity",
    "ActivityType",
    "Order",
    "OrderItem",
    "ServiceBooking",
]
