# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bulk reminder messages."""

import pytest

from eventreg_server.errors import ValidationError
from eventreg_server.services.batch import SEND_FAILED
from eventreg_server.services.bulk import send_bulk_message


async def test_blank_message_is_rejected(db, gateway, make_registration):
    await make_registration()
    with pytest.raises(ValidationError):
        await send_bulk_message(db, "   ", gateway, delay=0)
    assert gateway.texts == []


async def test_no_targets_is_rejected(db, gateway):
    with pytest.raises(ValidationError):
        await send_bulk_message(db, "Reminder", gateway, delay=0)


async def test_defaults_to_all_registrants(db, gateway, make_registration):
    a = await make_registration()
    b = await make_registration()
    result = await send_bulk_message(db, "See you tomorrow", gateway, delay=0)
    assert result.as_dict() == {"total": 2, "sent": 2, "failed": 0, "errors": []}
    assert sorted(phone for phone, _ in gateway.texts) == sorted([a.phone_number, b.phone_number])


async def test_explicit_numbers_and_name_placeholder(db, gateway, make_registration):
    reg = await make_registration(name="Layla")
    stranger = "07711111111"
    result = await send_bulk_message(
        db, "Hello {name}", gateway, [reg.phone_number, stranger], delay=0
    )
    assert result.sent == 2
    assert gateway.texts == [(reg.phone_number, "Hello Layla"), (stranger, "Hello {name}")]


async def test_failures_are_counted_per_phone(db, gateway):
    gateway.fail_phones.add("07700000002")
    gateway.raise_phones.add("07700000003")
    phones = ["07700000001", "07700000002", "07700000003"]

    result = await send_bulk_message(db, "Reminder", gateway, phones, delay=0)

    assert (result.total, result.sent, result.failed) == (3, 1, 2)
    assert result.errors == [
        {"phone": "07700000002", "error": SEND_FAILED},
        {"phone": "07700000003", "error": "gateway exploded"},
    ]


async def test_bulk_endpoint_is_rate_limited(client, make_registration):
    await make_registration()
    headers = {"X-Forwarded-For": "10.0.0.9"}
    first = await client.post(
        "/api/v1/admin/send-bulk-message", json={"message": "Reminder"}, headers=headers
    )
    assert first.status_code == 200
    assert first.json()["results"]["sent"] == 1

    second = await client.post(
        "/api/v1/admin/send-bulk-message", json={"message": "Reminder"}, headers=headers
    )
    assert second.status_code == 429
    assert "error" in second.json()


async def test_bulk_delay_between_sends(db, gateway, monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("eventreg_server.services.batch.asyncio.sleep", fake_sleep)
    phones = ["07700000001", "07700000002", "07700000003"]
    result = await send_bulk_message(db, "Reminder", gateway, phones, delay=0.5)
    assert result.sent == 3
    assert sleeps == [0.5, 0.5]
