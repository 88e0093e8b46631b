"""Tests for passcode issuance, rotation and lookup."""

import asyncio
import uuid

import pytest

from customer_sync.core.errors import NotFound, PasscodeExhausted, ValidationError
from customer_sync.core.logging_setup import mask_passcode
from customer_sync.services.passcode import (
    PasscodeAuthority,
    generate_passcode,
    validate_passcode,
)
from customer_sync.services.registry import DeviceRegistry


async def _create(db, passcode=None):
    customer = await PasscodeAuthority(db).issue(uuid.uuid4(), preferred=passcode)
    await db.commit()
    return customer


# ── Format ─────────────────────────────────────────

def test_generated_passcodes_are_six_digits():
    for _ in range(200):
        code = generate_passcode()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


@pytest.mark.parametrize("bad", ["", "12345", "1234567", "12a456", " 12345", "１２３４５６"])
def test_validate_rejects_malformed(bad):
    with pytest.raises(ValidationError):
        validate_passcode(bad)


def test_mask_passcode_keeps_last_two_digits():
    assert mask_passcode("482913") == "****13"
    assert mask_passcode(None) == "<none>"


# ── Issue / lookup ─────────────────────────────────

@pytest.mark.asyncio
async def test_issue_then_lookup(db):
    customer = await _create(db)
    assert len(customer.passcode) == 6
    assert customer.reward_tokens == 0

    found = await PasscodeAuthority(db).lookup(customer.passcode)
    assert found.id == customer.id


@pytest.mark.asyncio
async def test_issue_uses_preferred_code(db):
    customer = await _create(db, passcode="123456")
    assert customer.passcode == "123456"


@pytest.mark.asyncio
async def test_issue_rejects_malformed_preferred_code(db):
    with pytest.raises(ValidationError):
        await PasscodeAuthority(db).issue(uuid.uuid4(), preferred="12ab56")


@pytest.mark.asyncio
@pytest.mark.parametrize("preferred", ["012345", "000000", "099999"])
async def test_issue_rejects_preferred_code_below_range(db, preferred):
    with pytest.raises(ValidationError):
        await PasscodeAuthority(db).issue(uuid.uuid4(), preferred=preferred)


@pytest.mark.asyncio
async def test_taken_preferred_code_falls_back_to_generator(db):
    await _create(db, passcode="123456")
    authority = PasscodeAuthority(db, generator=lambda: "654321")
    customer = await authority.issue(uuid.uuid4(), preferred="123456")
    await db.commit()
    assert customer.passcode == "654321"


@pytest.mark.asyncio
async def test_issue_gives_up_after_max_attempts(db):
    await _create(db, passcode="111111")
    calls = []

    def always_taken():
        calls.append(1)
        return "111111"

    authority = PasscodeAuthority(db, max_attempts=3, generator=always_taken)
    with pytest.raises(PasscodeExhausted):
        await authority.issue(uuid.uuid4())
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_lookup_unknown_code(db):
    await _create(db, passcode="111111")
    with pytest.raises(NotFound):
        await PasscodeAuthority(db).lookup("222222")


@pytest.mark.asyncio
async def test_lookup_malformed_code_is_validation_error(db):
    with pytest.raises(ValidationError):
        await PasscodeAuthority(db).lookup("abc")


# ── Rotate ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_rotate_invalidates_previous_code(db):
    customer = await _create(db, passcode="111111")
    authority = PasscodeAuthority(db, generator=lambda: "222222")

    new_code = await authority.rotate(customer.id)

    assert new_code == "222222"
    with pytest.raises(NotFound):
        await authority.lookup("111111")
    assert (await authority.lookup("222222")).id == customer.id


@pytest.mark.asyncio
async def test_rotate_retries_on_collision(db):
    await _create(db, passcode="111111")
    customer = await _create(db, passcode="333333")
    customer_id = customer.id
    codes = iter(["111111", "222222"])

    authority = PasscodeAuthority(db, generator=lambda: next(codes))
    assert await authority.rotate(customer_id) == "222222"
    assert (await authority.lookup("111111")).id != customer_id


@pytest.mark.asyncio
async def test_rotate_exhausted(db):
    await _create(db, passcode="111111")
    customer = await _create(db, passcode="333333")
    customer_id = customer.id

    authority = PasscodeAuthority(db, max_attempts=2, generator=lambda: "111111")
    with pytest.raises(PasscodeExhausted):
        await authority.rotate(customer_id)
    assert (await authority.lookup("333333")).id == customer_id


@pytest.mark.asyncio
async def test_rotate_unknown_customer(db):
    with pytest.raises(NotFound):
        await PasscodeAuthority(db).rotate(uuid.uuid4())


@pytest.mark.asyncio
async def test_concurrent_rotate_leaves_one_live_code(db, session_factory):
    customer = await _create(db, passcode="111111")
    customer_id = customer.id

    async def rotate(code):
        async with session_factory() as session:
            return await PasscodeAuthority(session, generator=lambda: code).rotate(customer_id)

    issued = await asyncio.gather(rotate("222222"), rotate("333333"))
    assert sorted(issued) == ["222222", "333333"]

    async with session_factory() as session:
        stored = (await DeviceRegistry(session).get_customer(customer_id)).passcode
        authority = PasscodeAuthority(session)
        live = []
        for code in [*issued, "111111"]:
            try:
                await authority.lookup(code)
            except NotFound:
                continue
            live.append(code)

    assert live == [stored]
