"""Device pairing endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from customer_sync.core.deps import get_registry
from customer_sync.services.registry import DeviceRegistry
from customer_sync.schemas.device import DeviceLink, DeviceResponse, SuccessResponse

router = APIRouter(prefix="/customers/{customer_id}/devices", tags=["devices"])


@router.get("", response_model=list[DeviceResponse])
async def list_devices(
    customer_id: UUID,
    registry: DeviceRegistry = Depends(get_registry),
):
    """All devices bound to a customer, newest registration first."""
    devices = await registry.list_devices(customer_id)
    return [DeviceResponse.model_validate(d) for d in devices]


@router.post("", response_model=DeviceResponse)
async def link_device(
    customer_id: UUID,
    body: DeviceLink,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Bind a device to this customer, re-pairing it if it belonged to another."""
    device = await registry.link(
        customer_id=customer_id,
        device_id=body.device_id,
        fingerprint=body.fingerprint,
        display_name=body.device_name,
    )
    return DeviceResponse.model_validate(device)


@router.delete("/{device_id}", response_model=SuccessResponse)
async def unlink_device(
    customer_id: UUID,
    device_id: str,
    registry: DeviceRegistry = Depends(get_registry),
):
    await registry.unlink(customer_id, device_id)
    return SuccessResponse()


@router.put("/{device_id}/activity", response_model=SuccessResponse)
async def touch_device(
    customer_id: UUID,
    device_id: str,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Bump last_active_at. Unbound devices are ignored, not reported."""
    await registry.touch(customer_id, device_id)
    return SuccessResponse()
