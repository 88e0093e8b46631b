from customer_sync.schemas.customer import (
    CustomerCreate, CustomerCreateResponse, CustomerResponse, PasscodeResponse,
)
from customer_sync.schemas.device import (
    DeviceLink, DeviceResponse, SuccessResponse,
)
from customer_sync.schemas.activity import (
    ActivityAccepted, ActivityCreate, ActivityResponse, BookingResponse, OrderResponse,
)
from customer_sync.schemas.token import (
    BalanceResponse, BalanceUpdateResponse, TokenAmount,
)

__all__ = [
    "CustomerCreate", "CustomerCreateResponse", "CustomerResponse", "PasscodeResponse",
    "DeviceLink", "DeviceResponse", "SuccessResponse",
    "ActivityAccepted", "ActivityCreate", "ActivityResponse", "BookingResponse", "OrderResponse",
    "BalanceResponse", "BalanceUpdateResponse", "TokenAmount",
]
