"""Device identity: one durable, opaque, non-secret id per device.

Storage is injected through ``IdentityStorage`` so that the same logic runs
against a JSON file, a browser-backed bridge, or an in-memory fake in tests.
When durable storage fails the id falls back to memory, and the result says
so (``durable=False``) so the caller can warn that pairing will not survive a
restart.
"""

from __future__ import annotations

import json
import locale
import logging
import os
import platform
import re
import secrets
import time
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "device_id"
CUSTOMER_ID_KEY = "customer_id"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class StorageUnavailable(Exception):
    """Raised by an IdentityStorage that cannot read or persist values."""


class IdentityStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Values vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileStorage:
    """Durable storage in a small JSON document on disk."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                values = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"cannot read {self.path}: {e}") from e
        if not isinstance(values, dict):
            raise StorageUnavailable(f"cannot read {self.path}: expected a JSON object")
        return values

    def _write(self, values: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(values, f)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageUnavailable(f"cannot write {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = value
        self._write(values)

    def clear(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)


class DeviceIdResult(BaseModel):
    id: str
    durable: bool


class Fingerprint(BaseModel):
    """Descriptive traits for display and audit. Never an authorization factor."""
    user_agent: str = ""
    screen_resolution: str = ""
    timezone: str = ""
    language: str = ""
    platform: str = ""


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_device_id() -> str:
    """``dev_<time base36>_<random>``; uniqueness is also enforced server-side."""
    return f"dev_{_base36(time.time_ns() // 1_000_000)}_{secrets.token_hex(8)}"


def device_name(user_agent: str | None) -> str:
    """Human label for a user agent, e.g. ``"iPhone"`` or ``"Chrome Browser"``."""
    ua = user_agent or ""
    if re.search(r"iPhone", ua, re.I):
        return "iPhone"
    if re.search(r"iPad", ua, re.I):
        return "iPad"
    if re.search(r"Android", ua, re.I):
        return "Android Phone" if re.search(r"Mobile", ua, re.I) else "Android Tablet"
    if re.search(r"Edg(e|A|iOS)?/", ua, re.I):
        return "Edge Browser"
    if re.search(r"Chrome", ua, re.I):
        return "Chrome Browser"
    if re.search(r"Safari", ua, re.I):
        return "Safari Browser"
    if re.search(r"Firefox", ua, re.I):
        return "Firefox Browser"
    return "Web Browser"


def _host_traits() -> Fingerprint:
    language = locale.getlocale()[0] or ""
    return Fingerprint(
        user_agent=f"customer-sync-client ({platform.system()} {platform.release()}; Python {platform.python_version()})",
        timezone=time.tzname[0] if time.tzname else "",
        language=language.replace("_", "-"),
        platform=platform.machine(),
    )


class DeviceIdentity:
    def __init__(self, storage: IdentityStorage, traits: Fingerprint | None = None):
        self.storage = storage
        self._traits = traits
        self._ephemeral_id: str | None = None

    def get_or_create_id(self) -> DeviceIdResult:
        """Return this device's id, creating and persisting it on first use."""
        if self._ephemeral_id is not None:
            return DeviceIdResult(id=self._ephemeral_id, durable=False)

        try:
            device_id = self.storage.get(DEVICE_ID_KEY)
            if not device_id:
                device_id = generate_device_id()
                self.storage.set(DEVICE_ID_KEY, device_id)
                logger.info("Generated new device id %s", device_id)
            return DeviceIdResult(id=device_id, durable=True)
        except StorageUnavailable as e:
            self._ephemeral_id = generate_device_id()
            logger.warning("Identity storage unavailable, using session-only device id: %s", e)
            return DeviceIdResult(id=self._ephemeral_id, durable=False)

    def fingerprint(self) -> Fingerprint:
        if self._traits is not None:
            return self._traits.model_copy()
        return _host_traits()

    def device_name(self) -> str:
        return device_name(self.fingerprint().user_agent)

    # ── Locally remembered pairing ────────────────────
    def get_customer_id(self) -> str | None:
        try:
            return self.storage.get(CUSTOMER_ID_KEY)
        except StorageUnavailable as e:
            logger.warning("Cannot read remembered customer id: %s", e)
            return None

    def set_customer_id(self, customer_id: str) -> bool:
        """Remember the paired customer. Returns False if it could not be persisted."""
        try:
            self.storage.set(CUSTOMER_ID_KEY, customer_id)
        except StorageUnavailable as e:
            logger.warning("Cannot persist customer id %s: %s", customer_id, e)
            return False
        return True

    def clear_customer_id(self) -> None:
        try:
            self.storage.clear(CUSTOMER_ID_KEY)
        except StorageUnavailable as e:
            logger.warning("Cannot clear remembered customer id: %s", e)

    def is_registered(self) -> bool:
        return bool(self.get_customer_id())
