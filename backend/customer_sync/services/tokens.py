"""Token ledger: a non-negative spendable balance per customer.

Every balance change is one conditional UPDATE ... RETURNING. The follow-up
SELECT after a refused write only tells "unknown customer" apart from
"insufficient balance" or "over the limit"; it never feeds a write.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.core.errors import InsufficientBalance, NotFound, ValidationError
from customer_sync.models.customer import Customer
from customer_sync.models.mixins import utcnow

logger = logging.getLogger(__name__)

# Upper bound of the reward_tokens INTEGER column.
MAX_TOKENS = 2**31 - 1


def _validate_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= MAX_TOKENS:
        raise ValidationError("Invalid token amount")
    return amount


class TokenLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, customer_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(Customer.reward_tokens).where(Customer.id == customer_id)
        )
        balance = result.scalar_one_or_none()
        if balance is None:
            raise NotFound()
        return balance

    async def deduct(self, customer_id: uuid.UUID, amount: int) -> int:
        """Atomically subtract ``amount`` if the balance covers it; returns the new balance."""
        _validate_amount(amount)
        result = await self.db.execute(
            update(Customer)
            .where(Customer.id == customer_id, Customer.reward_tokens >= amount)
            .values(reward_tokens=Customer.reward_tokens - amount, updated_at=utcnow())
            .returning(Customer.reward_tokens)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            await self.db.rollback()
            balance = await self.get_balance(customer_id)
            logger.info(
                "Deduct of %d refused for customer %s (balance %d)", amount, customer_id, balance
            )
            raise InsufficientBalance(balance=balance, requested=amount)

        await self.db.commit()
        logger.info("Deducted %d tokens from customer %s, balance now %d", amount, customer_id, new_balance)
        return new_balance

    async def credit(self, customer_id: uuid.UUID, amount: int) -> int:
        _validate_amount(amount)
        result = await self.db.execute(
            update(Customer)
            .where(Customer.id == customer_id, Customer.reward_tokens <= MAX_TOKENS - amount)
            .values(reward_tokens=Customer.reward_tokens + amount, updated_at=utcnow())
            .returning(Customer.reward_tokens)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            await self.db.rollback()
            balance = await self.get_balance(customer_id)
            raise ValidationError(f"Credit would exceed the {MAX_TOKENS} token limit (balance {balance})")

        await self.db.commit()
        logger.info("Credited %d tokens to customer %s, balance now %d", amount, customer_id, new_balance)
        return new_balance
