"""Initial database schema - customers, customer_devices, customer_activities, orders, order_items, service_bookings

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB, "postgresql")

# Types are created explicitly once in upgrade(); payment_status is shared by two tables.
activity_type = postgresql.ENUM("view", "cart", "order", "booking", name="activity_type", create_type=False)
order_type = postgresql.ENUM("table", "room", "home", name="order_type", create_type=False)
order_status = postgresql.ENUM(
    "new", "accepted", "preparing", "ready", "served", "cancelled", name="order_status", create_type=False
)
payment_status = postgresql.ENUM("pending", "paid", "failed", name="payment_status", create_type=False)
booking_status = postgresql.ENUM(
    "pending", "confirmed", "inProgress", "completed", "cancelled", name="booking_status", create_type=False
)
ENUM_TYPES = (activity_type, order_type, order_status, payment_status, booking_status)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    # --- Customers ---
    op.create_table(
        "customers",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("passcode", sa.String(6), nullable=False, comment="Device pairing code"),
        sa.Column("reward_tokens", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("reward_tokens >= 0", name="ck_customers_reward_tokens_non_negative"),
    )
    op.create_index("ix_customers_passcode", "customers", ["passcode"], unique=True)

    # --- Customer Devices ---
    op.create_table(
        "customer_devices",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("device_id", sa.String(128), nullable=False),
        sa.Column("customer_id", sa.Uuid, sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("fingerprint", JSON),
        sa.Column("display_name", sa.String(100)),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_customer_devices_device_id", "customer_devices", ["device_id"], unique=True)
    op.create_index("ix_customer_devices_customer_id", "customer_devices", ["customer_id"])

    # --- Customer Activities ---
    op.create_table(
        "customer_activities",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("customer_id", sa.Uuid, sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("device_id", sa.String(128), nullable=False),
        sa.Column("business_id", sa.String(64)),
        sa.Column("activity_type", activity_type, nullable=False),
        sa.Column("payload", JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_customer_activities_business_id", "customer_activities", ["business_id"])
    op.create_index(
        "ix_customer_activities_customer_created", "customer_activities", ["customer_id", "created_at"]
    )

    # --- Orders ---
    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.Uuid, sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("seat_label", sa.String(50)),
        sa.Column("order_type", order_type, nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("payment_method", sa.String(20)),
        sa.Column("payment_status", payment_status, nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("customer_note", sa.Text),
        *_timestamps(),
    )
    op.create_index("ix_orders_business_id", "orders", ["business_id"])
    op.create_index("ix_orders_customer_created", "orders", ["customer_id", "created_at"])

    # --- Order Items ---
    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("order_id", sa.Uuid, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("menu_item_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("item_note", sa.Text),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    # --- Service Bookings ---
    op.create_table(
        "service_bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.Uuid, sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=False),
        sa.Column("service_type", sa.String(50)),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("number_of_participants", sa.Integer, nullable=False, server_default="1"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("service_details", JSON, nullable=False),
        sa.Column("payment_status", payment_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_service_bookings_business_id", "service_bookings", ["business_id"])
    op.create_index(
        "ix_service_bookings_customer_created", "service_bookings", ["customer_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("service_bookings")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("customer_activities")
    op.drop_table("customer_devices")
    op.drop_table("customers")

    bind = op.get_bind()
    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(bind, checkfirst=True)
