"""HTTP-level tests: routing, status codes and error bodies."""

import uuid

import pytest
from fastapi import Depends
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from customer_sync.core.deps import get_passcodes, get_token_ledger
from customer_sync.db.base import get_db
from customer_sync.services.passcode import PasscodeAuthority

API = "/api/v1"


async def _create(api_client, device_id="dev_a", **extra):
    response = await api_client.post(
        f"{API}/customers",
        json={"device_id": device_id, "fingerprint": {"language": "vi"}, "device_name": "iPhone", **extra},
    )
    assert response.status_code == 200, response.text
    return response.json()


# ── Customers ──────────────────────────────────────

@pytest.mark.asyncio
async def test_health(api_client):
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_and_resolve_customer(api_client):
    created = await _create(api_client)
    customer = created["customer"]
    assert created["device"]["device_id"] == "dev_a"
    assert created["device"]["display_name"] == "iPhone"
    assert customer["reward_tokens"] == 0

    by_device = await api_client.get(f"{API}/customers/by-device/dev_a")
    assert by_device.json()["id"] == customer["id"]

    by_code = await api_client.get(f"{API}/customers/by-passcode/{customer['passcode']}")
    assert by_code.json()["id"] == customer["id"]

    by_id = await api_client.get(f"{API}/customers/{customer['id']}")
    assert by_id.json()["passcode"] == customer["passcode"]


@pytest.mark.asyncio
async def test_create_with_malformed_passcode(api_client):
    response = await api_client.post(f"{API}/customers", json={"device_id": "dev_a", "passcode": "12"})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_unknown_lookups_are_404(api_client):
    response = await api_client.get(f"{API}/customers/by-device/dev_missing")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"

    response = await api_client.get(f"{API}/customers/by-passcode/999999")
    assert response.status_code == 404

    response = await api_client.get(f"{API}/customers/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_malformed_passcode_lookup_is_400(api_client):
    response = await api_client.get(f"{API}/customers/by-passcode/12ab56")
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_regenerate_passcode(api_client):
    customer = (await _create(api_client))["customer"]

    response = await api_client.post(f"{API}/customers/{customer['id']}/regenerate-passcode")
    assert response.status_code == 200
    new_code = response.json()["passcode"]
    assert new_code != customer["passcode"]

    old = await api_client.get(f"{API}/customers/by-passcode/{customer['passcode']}")
    assert old.status_code == 404
    new = await api_client.get(f"{API}/customers/by-passcode/{new_code}")
    assert new.json()["id"] == customer["id"]


@pytest.mark.asyncio
async def test_passcode_exhaustion_is_409(app, api_client):
    await _create(api_client, passcode="111111")

    def colliding_passcodes(db: AsyncSession = Depends(get_db)):
        return PasscodeAuthority(db, max_attempts=2, generator=lambda: "111111")

    app.dependency_overrides[get_passcodes] = colliding_passcodes
    response = await api_client.post(f"{API}/customers", json={"device_id": "dev_b"})

    assert response.status_code == 409
    assert response.json()["code"] == "passcode_exhausted"
    assert (await api_client.get(f"{API}/customers/by-device/dev_b")).status_code == 404


# ── Devices ────────────────────────────────────────

@pytest.mark.asyncio
async def test_link_list_unlink(api_client):
    owner = (await _create(api_client, "dev_a"))["customer"]
    other = (await _create(api_client, "dev_x"))["customer"]
    devices_url = f"{API}/customers/{owner['id']}/devices"

    response = await api_client.post(devices_url, json={"device_id": "dev_b", "device_name": "Chrome Browser"})
    assert response.status_code == 200
    assert response.json()["customer_id"] == owner["id"]

    listed = (await api_client.get(devices_url)).json()
    assert [d["device_id"] for d in listed] == ["dev_b", "dev_a"]

    refused = await api_client.delete(f"{API}/customers/{other['id']}/devices/dev_b")
    assert refused.status_code == 404
    assert refused.json()["code"] == "not_owned"

    response = await api_client.delete(f"{devices_url}/dev_b")
    assert response.json() == {"success": True}
    assert len((await api_client.get(devices_url)).json()) == 1


@pytest.mark.asyncio
async def test_link_to_unknown_customer(api_client):
    response = await api_client.post(f"{API}/customers/{uuid.uuid4()}/devices", json={"device_id": "dev_b"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_touch_device(api_client):
    customer = (await _create(api_client))["customer"]

    response = await api_client.put(f"{API}/customers/{customer['id']}/devices/dev_a/activity")
    assert response.status_code == 200

    ignored = await api_client.put(f"{API}/customers/{customer['id']}/devices/dev_missing/activity")
    assert ignored.status_code == 200


# ── Activities ─────────────────────────────────────

@pytest.mark.asyncio
async def test_activity_is_accepted_and_recorded(api_client):
    customer = (await _create(api_client))["customer"]
    url = f"{API}/customers/{customer['id']}/activities"

    response = await api_client.post(
        url,
        json={"device_id": "dev_a", "business_id": "biz_1", "activity_type": "view", "activity_data": {"item": "pho"}},
    )
    assert response.status_code == 202
    await api_client.post(url, json={"device_id": "dev_a", "business_id": "biz_2", "activity_type": "cart"})

    history = (await api_client.get(url)).json()
    assert [a["activity_type"] for a in history] == ["cart", "view"]

    filtered = (await api_client.get(url, params={"businessId": "biz_1"})).json()
    assert len(filtered) == 1
    assert filtered[0]["activity_data"] == {"item": "pho"}

    carts = (await api_client.get(url, params={"type": "cart"})).json()
    assert [a["business_id"] for a in carts] == ["biz_2"]


@pytest.mark.asyncio
async def test_activity_for_unknown_customer_still_accepted(api_client):
    response = await api_client.post(
        f"{API}/customers/{uuid.uuid4()}/activities",
        json={"device_id": "dev_a", "activity_type": "order"},
    )
    assert response.status_code == 202


@pytest.mark.asyncio
async def test_orders_and_bookings_empty(api_client):
    customer = (await _create(api_client))["customer"]
    assert (await api_client.get(f"{API}/customers/{customer['id']}/orders")).json() == []
    assert (await api_client.get(f"{API}/customers/{customer['id']}/bookings")).json() == []


# ── Tokens ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_token_flow(api_client):
    customer = (await _create(api_client))["customer"]
    base = f"{API}/customers/{customer['id']}"

    credited = await api_client.post(f"{base}/tokens/credit", json={"token_amount": 100})
    assert credited.json() == {"success": True, "new_balance": 100}

    spent = await api_client.post(f"{base}/use-tokens", json={"token_amount": 60})
    assert spent.json()["new_balance"] == 40

    refused = await api_client.post(f"{base}/use-tokens", json={"token_amount": 60})
    assert refused.status_code == 400
    assert refused.json()["code"] == "insufficient_balance"

    assert (await api_client.get(f"{base}/tokens")).json() == {"balance": 40}


@pytest.mark.asyncio
async def test_non_positive_token_amount_is_400(api_client):
    customer = (await _create(api_client))["customer"]
    response = await api_client.post(
        f"{API}/customers/{customer['id']}/use-tokens", json={"token_amount": 0}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_storage_failure_is_generic_500(app, api_client):
    class BrokenLedger:
        async def get_balance(self, customer_id):
            raise OperationalError("SELECT reward_tokens", {}, Exception("connection refused by 10.0.0.5"))

    app.dependency_overrides[get_token_ledger] = lambda: BrokenLedger()
    response = await api_client.get(f"{API}/customers/{uuid.uuid4()}/tokens")

    assert response.status_code == 500
    assert response.json()["code"] == "internal"
    assert "10.0.0.5" not in response.text


# ── Request validation ─────────────────────────────

@pytest.mark.asyncio
async def test_malformed_body_is_400(api_client):
    response = await api_client.post(f"{API}/customers", json={})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert "device_id" in response.json()["detail"]


@pytest.mark.asyncio
async def test_non_uuid_customer_id_is_400(api_client):
    response = await api_client.get(f"{API}/customers/not-a-uuid/tokens")
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
@pytest.mark.parametrize("device_id", ["dev/a", "dev?a", "dev#a", "dev a", "dev%2Fa"])
async def test_device_ids_must_be_path_safe(api_client, device_id):
    response = await api_client.post(f"{API}/customers", json={"device_id": device_id})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"

    customer = (await _create(api_client))["customer"]
    base = f"{API}/customers/{customer['id']}"
    linked = await api_client.post(f"{base}/devices", json={"device_id": device_id})
    assert linked.status_code == 400
    tracked = await api_client.post(
        f"{base}/activities", json={"device_id": device_id, "activity_type": "view"}
    )
    assert tracked.status_code == 400


@pytest.mark.asyncio
async def test_device_id_charset_round_trips(api_client):
    await _create(api_client, device_id="dev_Lx9.a:1-b")
    response = await api_client.get(f"{API}/customers/by-device/dev_Lx9.a:1-b")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_huge_token_amount_is_400(api_client):
    customer = (await _create(api_client))["customer"]
    base = f"{API}/customers/{customer['id']}"

    for url in (f"{base}/use-tokens", f"{base}/tokens/credit"):
        response = await api_client.post(url, json={"token_amount": 2**63})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
    assert (await api_client.get(f"{base}/tokens")).json() == {"balance": 0}
