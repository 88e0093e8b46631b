"""Async HTTP client for the customer sync API.

Critical calls (register, link, unlink, rotate, deduct) raise the matching
``DomainError`` subclass. Telemetry calls (``track_activity``,
``touch_device``) only log failures.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from customer_sync.client.identity import DeviceIdentity
from customer_sync.core.errors import ERRORS_BY_CODE, DomainError, Internal, NotFound

logger = logging.getLogger(__name__)


def _seg(value) -> str:
    """Quote one URL path segment."""
    return quote(str(value), safe="")


def _raise_for_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    code = body.get("code") if isinstance(body, dict) else None
    detail = body.get("detail") if isinstance(body, dict) else None
    error_cls = ERRORS_BY_CODE.get(code)
    if error_cls is None:
        error_cls = NotFound if response.status_code == 404 else Internal
    if not isinstance(detail, str):
        detail = None
    raise error_cls(detail)


class CustomerSyncClient:
    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "CustomerSyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        response = await self._client.request(method, f"/api/v1{url}", **kwargs)
        _raise_for_error(response)
        return response.json()

    # ── Customers ───────────────────────────────────
    async def create_customer(
        self,
        device_id: str,
        fingerprint: dict | None,
        device_name: str | None,
        passcode: str | None = None,
    ) -> dict:
        return await self._request(
            "POST",
            "/customers",
            json={
                "device_id": device_id,
                "fingerprint": fingerprint,
                "device_name": device_name,
                "passcode": passcode,
            },
        )

    async def get_customer(self, customer_id: str) -> dict | None:
        try:
            return await self._request("GET", f"/customers/{_seg(customer_id)}")
        except NotFound:
            return None

    async def get_customer_by_device(self, device_id: str) -> dict | None:
        try:
            return await self._request("GET", f"/customers/by-device/{_seg(device_id)}")
        except NotFound:
            return None

    async def get_customer_by_passcode(self, passcode: str) -> dict | None:
        try:
            return await self._request("GET", f"/customers/by-passcode/{_seg(passcode)}")
        except NotFound:
            return None

    async def regenerate_passcode(self, customer_id: str) -> str:
        data = await self._request("POST", f"/customers/{_seg(customer_id)}/regenerate-passcode")
        return data["passcode"]

    # ── Devices ─────────────────────────────────────
    async def link_device(
        self, customer_id: str, device_id: str, fingerprint: dict | None, device_name: str | None
    ) -> dict:
        return await self._request(
            "POST",
            f"/customers/{_seg(customer_id)}/devices",
            json={"device_id": device_id, "fingerprint": fingerprint, "device_name": device_name},
        )

    async def list_devices(self, customer_id: str) -> list[dict]:
        return await self._request("GET", f"/customers/{_seg(customer_id)}/devices")

    async def unlink_device(self, customer_id: str, device_id: str) -> None:
        await self._request("DELETE", f"/customers/{_seg(customer_id)}/devices/{_seg(device_id)}")

    async def touch_device(self, customer_id: str, device_id: str) -> None:
        try:
            await self._request("PUT", f"/customers/{_seg(customer_id)}/devices/{_seg(device_id)}/activity")
        except (DomainError, httpx.HTTPError) as e:
            logger.warning("Failed to update device activity for %s: %s", device_id, e)

    # ── Activity history ────────────────────────────
    async def track_activity(
        self,
        customer_id: str,
        device_id: str,
        activity_type: str,
        activity_data: dict[str, Any],
        business_id: str | None = None,
    ) -> None:
        try:
            await self._request(
                "POST",
                f"/customers/{_seg(customer_id)}/activities",
                json={
                    "device_id": device_id,
                    "business_id": business_id,
                    "activity_type": activity_type,
                    "activity_data": activity_data,
                },
            )
        except (DomainError, httpx.HTTPError) as e:
            logger.warning("Failed to track %s activity: %s", activity_type, e)

    async def _history(self, customer_id: str, kind: str, business_id: str | None) -> list[dict]:
        params = {"businessId": business_id} if business_id else None
        return await self._request("GET", f"/customers/{_seg(customer_id)}/{kind}", params=params)

    async def list_activities(self, customer_id: str, business_id: str | None = None) -> list[dict]:
        return await self._history(customer_id, "activities", business_id)

    async def list_orders(self, customer_id: str, business_id: str | None = None) -> list[dict]:
        return await self._history(customer_id, "orders", business_id)

    async def list_bookings(self, customer_id: str, business_id: str | None = None) -> list[dict]:
        return await self._history(customer_id, "bookings", business_id)

    # ── Tokens ──────────────────────────────────────
    async def get_balance(self, customer_id: str) -> int:
        data = await self._request("GET", f"/customers/{_seg(customer_id)}/tokens")
        return data["balance"]

    async def use_tokens(self, customer_id: str, amount: int) -> int:
        """Spend tokens; raises InsufficientBalance when the balance does not cover ``amount``."""
        data = await self._request(
            "POST", f"/customers/{_seg(customer_id)}/use-tokens", json={"token_amount": amount}
        )
        return data["new_balance"]

    # ── Pairing flows ───────────────────────────────
    async def ensure_profile(self, identity: DeviceIdentity) -> dict:
        """Return this device's customer, registering a new one if the device is unknown."""
        device = identity.get_or_create_id()
        customer = await self.get_customer_by_device(device.id)
        if customer is None:
            fingerprint = identity.fingerprint()
            created = await self.create_customer(
                device.id, fingerprint.model_dump(), identity.device_name()
            )
            customer = created["customer"]
        identity.set_customer_id(customer["id"])
        return customer

    async def pair_with_passcode(self, identity: DeviceIdentity, passcode: str) -> dict:
        """Link this device to the customer holding ``passcode``."""
        customer = await self.get_customer_by_passcode(passcode)
        if customer is None:
            raise NotFound("Invalid passcode")
        device = identity.get_or_create_id()
        fingerprint = identity.fingerprint()
        await self.link_device(customer["id"], device.id, fingerprint.model_dump(), identity.device_name())
        identity.set_customer_id(customer["id"])
        return customer

    async def forget_device(self, identity: DeviceIdentity) -> None:
        """Unlink this device from its customer and drop the local pairing."""
        customer_id = identity.get_customer_id()
        if customer_id:
            await self.unlink_device(customer_id, identity.get_or_create_id().id)
        identity.clear_customer_id()


