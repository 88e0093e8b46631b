"""Activity, order and booking read schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from customer_sync.models.activity import ActivityType
from customer_sync.models.booking import BookingStatus
from customer_sync.models.device import DEVICE_ID_MAX_LENGTH, DEVICE_ID_PATTERN
from customer_sync.models.order import OrderStatus, OrderType, PaymentStatus


class ActivityCreate(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=DEVICE_ID_MAX_LENGTH, pattern=DEVICE_ID_PATTERN)
    business_id: str | None = Field(None, max_length=64)
    activity_type: ActivityType
    activity_data: dict[str, Any] = Field(default_factory=dict)


class ActivityAccepted(BaseModel):
    accepted: bool = True


class ActivityResponse(BaseModel):
    id: UUID
    customer_id: UUID
    device_id: str
    business_id: str | None
    activity_type: ActivityType
    activity_data: dict[str, Any] = Field(validation_alias="payload")
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderItemResponse(BaseModel):
    id: UUID
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    item_note: str | None

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: UUID
    business_id: str
    customer_id: UUID | None
    seat_label: str | None
    order_type: OrderType
    status: OrderStatus
    payment_method: str | None
    payment_status: PaymentStatus
    total_amount: Decimal
    customer_note: str | None
    items: list[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: UUID
    business_id: str
    customer_id: UUID | None
    customer_name: str
    customer_phone: str
    service_type: str | None
    status: BookingStatus
    event_date: datetime
    number_of_participants: int
    total_amount: Decimal
    service_details: dict[str, Any]
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
