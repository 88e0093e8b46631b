"""Device registry: the many-devices-to-one-customer binding.

Per-device lifecycle::

    Unregistered --register|link--> Linked(c)
    Linked(c) --link(c2)--> Linked(c2)
    Linked(c) --unlink--> Unregistered

Unlink deletes the device row. Customers are never deleted here, so unlinking
the last device leaves a customer with no devices.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.core.errors import NotFound, NotOwned
from customer_sync.db.dialect import conflict_insert
from customer_sync.models.customer import Customer
from customer_sync.models.device import Device
from customer_sync.models.mixins import utcnow
from customer_sync.services.passcode import PasscodeAuthority

logger = logging.getLogger(__name__)


def _monotonic(current, candidate):
    """SQL expression that keeps the later of two timestamps."""
    return case((current < candidate, candidate), else_=current)


class DeviceRegistry:
    def __init__(self, db: AsyncSession, passcodes: PasscodeAuthority | None = None):
        self.db = db
        self.passcodes = passcodes or PasscodeAuthority(db)

    async def register(
        self,
        device_id: str,
        fingerprint: dict | None,
        display_name: str | None,
        passcode: str | None = None,
    ) -> tuple[Customer, Device]:
        """Create a new customer and bind ``device_id`` to it in one transaction.

        If binding the device fails the customer insert is rolled back with it.
        """
        customer_id = uuid.uuid4()
        try:
            customer = await self.passcodes.issue(customer_id, preferred=passcode)
            device = await self._upsert(customer_id, device_id, fingerprint, display_name)
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise

        logger.info("Registered customer %s with device %s", customer.id, device_id)
        return customer, device

    async def link(
        self,
        customer_id: uuid.UUID,
        device_id: str,
        fingerprint: dict | None,
        display_name: str | None,
    ) -> Device:
        """Bind or re-bind a device; the last commit decides the final owner."""
        try:
            device = await self._upsert(customer_id, device_id, fingerprint, display_name)
            await self.db.commit()
        except IntegrityError:
            # Only the customer foreign key can fail; device_id conflicts are upserted.
            await self.db.rollback()
            raise NotFound()
        except BaseException:
            await self.db.rollback()
            raise

        logger.info("Linked device %s to customer %s", device_id, customer_id)
        return device

    async def _upsert(
        self,
        customer_id: uuid.UUID,
        device_id: str,
        fingerprint: dict | None,
        display_name: str | None,
    ) -> Device:
        now = utcnow()
        stmt = conflict_insert(self.db, Device).values(
            customer_id=customer_id,
            device_id=device_id,
            fingerprint=fingerprint,
            display_name=display_name,
            last_active_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["device_id"],
            set_={
                "customer_id": stmt.excluded.customer_id,
                "fingerprint": stmt.excluded.fingerprint,
                "display_name": stmt.excluded.display_name,
                "last_active_at": _monotonic(Device.last_active_at, stmt.excluded.last_active_at),
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(Device)
        result = await self.db.scalars(stmt, execution_options={"populate_existing": True})
        return result.one()

    async def unlink(self, customer_id: uuid.UUID, device_id: str) -> None:
        """Remove the binding only if ``customer_id`` currently owns the device."""
        result = await self.db.execute(
            delete(Device)
            .where(Device.device_id == device_id, Device.customer_id == customer_id)
            .returning(Device.id)
        )
        removed = result.scalar_one_or_none()
        if removed is None:
            await self.db.rollback()
            logger.info("Unlink refused: device %s not owned by customer %s", device_id, customer_id)
            raise NotOwned()
        await self.db.commit()
        logger.info("Unlinked device %s from customer %s", device_id, customer_id)

    async def list_devices(self, customer_id: uuid.UUID) -> list[Device]:
        result = await self.db.execute(
            select(Device)
            .where(Device.customer_id == customer_id)
            .order_by(Device.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def touch(self, customer_id: uuid.UUID, device_id: str, at: datetime | None = None) -> bool:
        """Advance ``last_active_at``; an older ``at`` never moves it backward.

        Returns False when the device is not bound to ``customer_id``.
        """
        at = at or utcnow()
        result = await self.db.execute(
            update(Device)
            .where(Device.device_id == device_id, Device.customer_id == customer_id)
            .values(last_active_at=_monotonic(Device.last_active_at, at))
            .returning(Device.id)
            .execution_options(synchronize_session=False)
        )
        touched = result.scalar_one_or_none() is not None
        await self.db.commit()
        if not touched:
            logger.debug("Touch ignored for unbound device %s", device_id)
        return touched

    async def get_by_device(self, device_id: str) -> Customer:
        result = await self.db.execute(
            select(Customer)
            .join(Device, Device.customer_id == Customer.id)
            .where(Device.device_id == device_id)
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFound("Device not linked to any customer")
        return customer

    async def get_customer(self, customer_id: uuid.UUID) -> Customer:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFound()
        return customer
