"""Device schemas for request/response."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from customer_sync.models.device import DEVICE_ID_MAX_LENGTH, DEVICE_ID_PATTERN


class DeviceBase(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=DEVICE_ID_MAX_LENGTH, pattern=DEVICE_ID_PATTERN)
    fingerprint: dict[str, Any] | None = Field(None, description="Display/audit traits, never an auth factor")
    device_name: str | None = Field(None, max_length=100)


class DeviceLink(DeviceBase):
    """Bind (or re-bind) a device to the customer in the path."""


class DeviceResponse(BaseModel):
    id: UUID
    device_id: str
    customer_id: UUID
    fingerprint: dict[str, Any] | None
    display_name: str | None
    last_active_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SuccessResponse(BaseModel):
    success: bool = True
