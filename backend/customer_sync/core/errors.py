"""Domain error taxonomy shared by services, the HTTP layer and the device client."""

from fastapi import status


class DomainError(Exception):
    """Base for errors that map onto a client-visible status code.

    ``detail`` is safe to return to the client; never put storage error text in it.
    ``code`` is a stable machine-readable tag sent alongside it.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal"
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Invalid request"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Customer not found"


class NotOwned(NotFound):
    """Unlink attempted by a customer that does not own the device."""

    code = "not_owned"
    default_detail = "Device not linked to this customer"


class InsufficientBalance(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "insufficient_balance"
    default_detail = "Insufficient token balance"

    def __init__(self, detail: str | None = None, balance: int | None = None, requested: int | None = None):
        self.balance = balance
        self.requested = requested
        super().__init__(detail)


class PasscodeExhausted(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "passcode_exhausted"
    default_detail = "Could not allocate a unique passcode, please retry"


class Internal(DomainError):
    pass


ERRORS_BY_CODE: dict[str, type[DomainError]] = {
    cls.code: cls
    for cls in (ValidationError, NotFound, NotOwned, InsufficientBalance, PasscodeExhausted, Internal)
}
