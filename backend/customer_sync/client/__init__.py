"""Device-side half of customer sync: local identity and the API client."""

from customer_sync.client.http import CustomerSyncClient
from customer_sync.client.identity import (
    DeviceIdentity,
    DeviceIdResult,
    Fingerprint,
    JsonFileStorage,
    MemoryStorage,
    StorageUnavailable,
    device_name,
)

__all__ = [
    "CustomerSyncClient",
    "DeviceIdentity",
    "DeviceIdResult",
    "Fingerprint",
    "JsonFileStorage",
    "MemoryStorage",
    "StorageUnavailable",
    "device_name",
]
