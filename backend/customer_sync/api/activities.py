"""Activity history endpoints, aggregated across every device a customer ever used."""

import logging
from collections.abc import Callable
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.core.deps import get_activity_ledger, get_session_factory
from customer_sync.models.activity import ActivityType
from customer_sync.services.activity import ActivityLedger
from customer_sync.schemas.activity import (
    ActivityAccepted,
    ActivityCreate,
    ActivityResponse,
    BookingResponse,
    OrderResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers/{customer_id}", tags=["activities"])


async def record_activity(
    session_factory: Callable[[], AsyncSession],
    customer_id: UUID,
    body: ActivityCreate,
) -> None:
    """Background task: write one activity on a session of its own."""
    async with session_factory() as db:
        await ActivityLedger(db).append(
            customer_id=customer_id,
            device_id=body.device_id,
            activity_type=body.activity_type,
            payload=body.activity_data,
            business_id=body.business_id,
        )


@router.post("/activities", response_model=ActivityAccepted, status_code=status.HTTP_202_ACCEPTED)
async def append_activity(
    customer_id: UUID,
    body: ActivityCreate,
    background_tasks: BackgroundTasks,
    session_factory: Callable[[], AsyncSession] = Depends(get_session_factory),
):
    """Queue an activity record. The caller never waits on (or fails with) the write."""
    background_tasks.add_task(record_activity, session_factory, customer_id, body)
    return ActivityAccepted()


@router.get("/activities", response_model=list[ActivityResponse])
async def list_activities(
    customer_id: UUID,
    business_id: str | None = Query(None, alias="businessId"),
    activity_type: ActivityType | None = Query(None, alias="type"),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    activities = await ledger.query(customer_id, business_id=business_id, activity_type=activity_type)
    return [ActivityResponse.model_validate(a) for a in activities]


@router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    customer_id: UUID,
    business_id: str | None = Query(None, alias="businessId"),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """All orders attributed to the customer, whichever device placed them."""
    orders = await ledger.list_orders(customer_id, business_id=business_id)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    customer_id: UUID,
    business_id: str | None = Query(None, alias="businessId"),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    bookings = await ledger.list_bookings(customer_id, business_id=business_id)
    return [BookingResponse.model_validate(b) for b in bookings]
