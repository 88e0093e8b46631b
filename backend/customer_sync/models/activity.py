"""Append-only customer activity records."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from customer_sync.db.base import Base
from customer_sync.models.device import DEVICE_ID_MAX_LENGTH
from customer_sync.models.mixins import UUIDPrimaryKeyMixin, utcnow


class ActivityType(str, enum.Enum):
    VIEW = "view"
    CART = "cart"
    ORDER = "order"
    BOOKING = "booking"


class Activity(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "customer_activities"
    __table_args__ = (
        Index("ix_customer_activities_customer_created", "customer_id", "created_at"),
    )

    activity_type: Mapped[ActivityType] = mapped_column(
        Enum(ActivityType, name="activity_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    payload: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False)
    # Not a foreign key: the device may be unlinked later, the record stays.
    device_id: Mapped[str] = mapped_column(String(DEVICE_ID_MAX_LENGTH), nullable=False)
    business_id: Mapped[str | None] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Foreign keys
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Activity {self.activity_type} customer={self.customer_id}>"
