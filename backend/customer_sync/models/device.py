"""Device model - one browser/app instance bound to a customer."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from customer_sync.db.base import Base
from customer_sync.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, utcnow

DEVICE_ID_MAX_LENGTH = 128
# Device ids travel as URL path segments.
DEVICE_ID_PATTERN = r"^[A-Za-z0-9_.:-]+$"


class Device(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "customer_devices"

    device_id: Mapped[str] = mapped_column(
        String(DEVICE_ID_MAX_LENGTH), unique=True, nullable=False, index=True
    )
    # Display/audit only, never used for authorization
    fingerprint: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    display_name: Mapped[str | None] = mapped_column(String(100))
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Foreign keys
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    customer = relationship("Customer", back_populates="devices")

    def __repr__(self) -> str:
        return f"<Device {self.device_id} customer={self.customer_id}>"
