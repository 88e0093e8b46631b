"""Customer model."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from customer_sync.db.base import Base
from customer_sync.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin

PASSCODE_LENGTH = 6


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("reward_tokens >= 0", name="ck_customers_reward_tokens_non_negative"),
    )

    passcode: Mapped[str] = mapped_column(
        String(PASSCODE_LENGTH), unique=True, nullable=False, index=True, comment="Device pairing code"
    )
    reward_tokens: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    # Relationships
    devices = relationship(
        "Device",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Device.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Customer {self.id} tokens={self.reward_tokens}>"
