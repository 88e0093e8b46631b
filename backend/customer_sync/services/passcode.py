"""Passcode authority: issues, rotates and resolves 6-digit pairing codes.

Uniqueness is enforced by the unique index on ``customers.passcode``; this
module never checks for a free code before writing it. Issuance uses
``INSERT ... ON CONFLICT (passcode) DO NOTHING`` and treats an empty RETURNING
as a collision; rotation is a single UPDATE retried on IntegrityError.
"""

import logging
import re
import secrets
import uuid
from collections.abc import Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.core.config import settings
from customer_sync.core.errors import NotFound, PasscodeExhausted, ValidationError
from customer_sync.core.logging_setup import mask_passcode
from customer_sync.db.dialect import conflict_insert
from customer_sync.models.customer import Customer
from customer_sync.models.mixins import utcnow

logger = logging.getLogger(__name__)

PASSCODE_PATTERN = re.compile(r"[0-9]{6}")
PASSCODE_MIN = 100000
PASSCODE_MAX = 999999


def generate_passcode() -> str:
    """Uniformly random code in [100000, 999999]."""
    return str(PASSCODE_MIN + secrets.randbelow(PASSCODE_MAX - PASSCODE_MIN + 1))


def validate_passcode(passcode: str) -> str:
    if not isinstance(passcode, str) or not PASSCODE_PATTERN.fullmatch(passcode):
        raise ValidationError("Passcode must be exactly 6 digits")
    return passcode


def validate_new_passcode(passcode: str) -> str:
    """Shape check plus the issuable range; stored codes never start with 0."""
    validate_passcode(passcode)
    if not PASSCODE_MIN <= int(passcode) <= PASSCODE_MAX:
        raise ValidationError(f"Passcode must be between {PASSCODE_MIN} and {PASSCODE_MAX}")
    return passcode


class PasscodeAuthority:
    def __init__(
        self,
        db: AsyncSession,
        max_attempts: int | None = None,
        generator: Callable[[], str] = generate_passcode,
    ):
        self.db = db
        self.max_attempts = max_attempts or settings.PASSCODE_MAX_ATTEMPTS
        self.generator = generator

    async def issue(self, customer_id: uuid.UUID, preferred: str | None = None) -> Customer:
        """Create the customer row with a unique passcode.

        Does not commit: the caller owns the surrounding transaction. A valid
        ``preferred`` code is tried first and counts as one attempt.
        """
        candidates = [validate_new_passcode(preferred)] if preferred else []
        for attempt in range(1, self.max_attempts + 1):
            passcode = candidates.pop() if candidates else self.generator()
            stmt = conflict_insert(self.db, Customer).values(id=customer_id, passcode=passcode)
            stmt = stmt.on_conflict_do_nothing(index_elements=["passcode"]).returning(Customer)
            result = await self.db.scalars(stmt, execution_options={"populate_existing": True})
            customer = result.one_or_none()
            if customer is not None:
                return customer
            logger.info(
                "Passcode collision on issue for customer %s (attempt %d/%d)",
                customer_id, attempt, self.max_attempts,
            )

        logger.error("Passcode retries exhausted on issue for customer %s", customer_id)
        raise PasscodeExhausted()

    async def rotate(self, customer_id: uuid.UUID) -> str:
        """Replace the customer's passcode; the old one stops resolving on commit."""
        for attempt in range(1, self.max_attempts + 1):
            passcode = self.generator()
            try:
                result = await self.db.execute(
                    update(Customer)
                    .where(Customer.id == customer_id)
                    .values(passcode=passcode, updated_at=utcnow())
                    .returning(Customer.id)
                )
                if result.scalar_one_or_none() is None:
                    await self.db.rollback()
                    raise NotFound()
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.info(
                    "Passcode collision on rotate for customer %s (attempt %d/%d)",
                    customer_id, attempt, self.max_attempts,
                )
                continue

            logger.info("Rotated passcode for customer %s to %s", customer_id, mask_passcode(passcode))
            return passcode

        logger.error("Passcode retries exhausted on rotate for customer %s", customer_id)
        raise PasscodeExhausted()

    async def lookup(self, passcode: str) -> Customer:
        validate_passcode(passcode)
        result = await self.db.execute(
            select(Customer)
            .where(Customer.passcode == passcode)
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            logger.info("No customer for passcode %s", mask_passcode(passcode))
            raise NotFound()
        return customer
