"""Customer & pairing schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from customer_sync.schemas.device import DeviceBase, DeviceResponse


class CustomerResponse(BaseModel):
    id: UUID
    passcode: str
    reward_tokens: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Register ──────────────────────────────────────
class CustomerCreate(DeviceBase):
    """Register path: create a customer and bind the calling device."""
    passcode: str | None = Field(None, description="Optional client-proposed 6-digit code")


class CustomerCreateResponse(BaseModel):
    customer: CustomerResponse
    device: DeviceResponse


# ── Passcode ──────────────────────────────────────
class PasscodeResponse(BaseModel):
    passcode: str
