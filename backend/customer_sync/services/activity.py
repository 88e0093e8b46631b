"""Activity ledger: append-only history, read back by customer attribution.

Reads filter on ``customer_id`` only, never joining through the device
registry, so records written from devices that were later unlinked still show
up.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.models.activity import Activity, ActivityType
from customer_sync.models.booking import ServiceBooking
from customer_sync.models.order import Order

logger = logging.getLogger(__name__)


class ActivityLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        customer_id: uuid.UUID,
        device_id: str,
        activity_type: ActivityType | str,
        payload: dict[str, Any] | None = None,
        business_id: str | None = None,
    ) -> Activity | None:
        """Best-effort write. Failures are logged and swallowed, never raised."""
        try:
            activity = Activity(
                customer_id=customer_id,
                device_id=device_id,
                business_id=business_id,
                activity_type=ActivityType(activity_type),
                payload=payload or {},
            )
            self.db.add(activity)
            await self.db.commit()
        except (SQLAlchemyError, ValueError) as e:
            await self.db.rollback()
            logger.warning(
                "Dropped %s activity for customer %s from device %s: %s",
                activity_type, customer_id, device_id, e,
            )
            return None
        except Exception as e:
            # Driver-level failures (e.g. OSError on connect) are not wrapped by SQLAlchemy.
            await self.db.rollback()
            logger.warning(
                "Dropped %s activity for customer %s from device %s: %r",
                activity_type, customer_id, device_id, e, exc_info=True,
            )
            return None
        return activity

    async def query(
        self,
        customer_id: uuid.UUID,
        business_id: str | None = None,
        activity_type: ActivityType | None = None,
    ) -> list[Activity]:
        query = select(Activity).where(Activity.customer_id == customer_id)
        if business_id:
            query = query.where(Activity.business_id == business_id)
        if activity_type:
            query = query.where(Activity.activity_type == activity_type)
        result = await self.db.execute(query.order_by(Activity.created_at.desc()))
        return list(result.scalars().all())

    async def list_orders(self, customer_id: uuid.UUID, business_id: str | None = None) -> list[Order]:
        query = select(Order).where(Order.customer_id == customer_id)
        if business_id:
            query = query.where(Order.business_id == business_id)
        result = await self.db.execute(query.order_by(Order.created_at.desc()))
        return list(result.scalars().all())

    async def list_bookings(
        self, customer_id: uuid.UUID, business_id: str | None = None
    ) -> list[ServiceBooking]:
        query = select(ServiceBooking).where(ServiceBooking.customer_id == customer_id)
        if business_id:
            query = query.where(ServiceBooking.business_id == business_id)
        result = await self.db.execute(query.order_by(ServiceBooking.created_at.desc()))
        return list(result.scalars().all())
