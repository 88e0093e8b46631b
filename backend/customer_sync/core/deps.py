"""Dependency injection: per-request services bound to the request's session."""

from collections.abc import Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.db.base import async_session, get_db
from customer_sync.services.activity import ActivityLedger
from customer_sync.services.passcode import PasscodeAuthority
from customer_sync.services.registry import DeviceRegistry
from customer_sync.services.tokens import TokenLedger


def get_passcodes(db: AsyncSession = Depends(get_db)) -> PasscodeAuthority:
    return PasscodeAuthority(db)


def get_registry(
    db: AsyncSession = Depends(get_db),
    passcodes: PasscodeAuthority = Depends(get_passcodes),
) -> DeviceRegistry:
    return DeviceRegistry(db, passcodes)


def get_activity_ledger(db: AsyncSession = Depends(get_db)) -> ActivityLedger:
    return ActivityLedger(db)


def get_token_ledger(db: AsyncSession = Depends(get_db)) -> TokenLedger:
    return TokenLedger(db)


def get_session_factory() -> Callable[[], AsyncSession]:
    """Session factory for work that outlives the request (background tasks)."""
    return async_session
