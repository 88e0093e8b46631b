"""Customer profile endpoints: register, lookup, passcode rotation."""

from uuid import UUID

from fastapi import APIRouter, Depends

from customer_sync.core.deps import get_passcodes, get_registry
from customer_sync.services.passcode import PasscodeAuthority
from customer_sync.services.registry import DeviceRegistry
from customer_sync.schemas.customer import (
    CustomerCreate,
    CustomerCreateResponse,
    CustomerResponse,
    PasscodeResponse,
)
from customer_sync.schemas.device import DeviceResponse

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerCreateResponse)
async def create_customer(
    body: CustomerCreate,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Create a customer profile and bind the calling device to it."""
    customer, device = await registry.register(
        device_id=body.device_id,
        fingerprint=body.fingerprint,
        display_name=body.device_name,
        passcode=body.passcode,
    )
    return CustomerCreateResponse(
        customer=CustomerResponse.model_validate(customer),
        device=DeviceResponse.model_validate(device),
    )


@router.get("/by-device/{device_id}", response_model=CustomerResponse)
async def get_customer_by_device(
    device_id: str,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Resolve the customer a device is bound to (404 when unregistered)."""
    customer = await registry.get_by_device(device_id)
    return CustomerResponse.model_validate(customer)


@router.get("/by-passcode/{passcode}", response_model=CustomerResponse)
async def get_customer_by_passcode(
    passcode: str,
    passcodes: PasscodeAuthority = Depends(get_passcodes),
):
    """Resolve a pairing code; malformed codes are 400, unknown codes 404."""
    customer = await passcodes.lookup(passcode)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    registry: DeviceRegistry = Depends(get_registry),
):
    customer = await registry.get_customer(customer_id)
    return CustomerResponse.model_validate(customer)


@router.post("/{customer_id}/regenerate-passcode", response_model=PasscodeResponse)
async def regenerate_passcode(
    customer_id: UUID,
    passcodes: PasscodeAuthority = Depends(get_passcodes),
):
    """Issue a fresh passcode; the previous one stops resolving immediately."""
    passcode = await passcodes.rotate(customer_id)
    return PasscodeResponse(passcode=passcode)
