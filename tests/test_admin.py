# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin endpoints: listing, export, edits, invitations, settings."""

import asyncio

from httpx import AsyncClient

from eventreg_server.main import app
from eventreg_server.models.event_settings import DEFAULT_INVITATION_MESSAGE


async def test_list_registrations_and_city_filter(client: AsyncClient, make_registration):
    await make_registration(city="بغداد")
    await make_registration(city="البصرة")

    r = await client.get("/api/v1/admin/registrations")
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 2
    first = data["registrations"][0]
    assert {"phoneNumber", "invitationCode", "qrCodeScanned", "familyAccepted", "createdAt"} <= set(first)

    basra = await client.get("/api/v1/admin/registrations", params={"city": "البصرة"})
    assert basra.json()["total"] == 1


async def test_export_csv(client: AsyncClient, make_registration):
    await make_registration(name="Zaid", message="hi, there")
    r = await client.get("/api/v1/admin/registrations/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    text = r.content.decode("utf-8")
    assert text.startswith("\ufeff")
    assert '"Zaid"' in text and '"hi, there"' in text


async def test_stats(client: AsyncClient, make_registration):
    await make_registration(invitation_sent=True, family_accepted=True)
    await make_registration(attended=True, qr_code_scanned=True)
    await make_registration()
    r = await client.get("/api/v1/admin/stats")
    assert r.json() == {
        "total": 3,
        "invitationSent": 1,
        "familyAccepted": 1,
        "attended": 1,
        "qrCodeScanned": 1,
    }


async def test_update_registration_fields(client: AsyncClient, make_registration):
    reg = await make_registration(notes="old")
    r = await client.patch(
        "/api/v1/admin/update-registration",
        json={"id": reg.id, "attended": True, "notes": ""},
    )
    assert r.status_code == 200
    updated = r.json()["registration"]
    assert updated["attended"] is True
    assert updated["notes"] is None
    # Fields not sent are left alone
    assert updated["familyAccepted"] is False


async def test_update_unknown_registration(client: AsyncClient):
    r = await client.patch("/api/v1/admin/update-registration", json={"id": "nope", "attended": True})
    assert r.status_code == 404


async def test_accepting_family_sends_qr_in_background(client: AsyncClient, gateway, make_registration):
    reg = await make_registration(otp_code="482913")
    r = await client.patch(
        "/api/v1/admin/update-registration", json={"id": reg.id, "familyAccepted": True}
    )
    assert r.status_code == 200
    assert r.json()["registration"]["familyAccepted"] is True

    await app.state.dispatcher.drain()
    assert [phone for phone, _, _ in gateway.images] == [reg.phone_number]

    # Accepting again is not a transition and sends nothing new
    await client.patch("/api/v1/admin/update-registration", json={"id": reg.id, "familyAccepted": True})
    await app.state.dispatcher.drain()
    assert len(gateway.images) == 1


async def test_concurrent_acceptance_sends_one_qr(client: AsyncClient, gateway, make_registration):
    """Overlapping accept edits (a double click) dispatch the QR once."""
    reg = await make_registration(otp_code="482913")
    responses = await asyncio.gather(
        *(
            client.patch("/api/v1/admin/update-registration", json={"id": reg.id, "familyAccepted": True})
            for _ in range(3)
        )
    )
    assert [r.status_code for r in responses] == [200, 200, 200]
    assert all(r.json()["registration"]["familyAccepted"] for r in responses)

    await app.state.dispatcher.drain()
    assert len(gateway.images) == 1
    assert len(app.state.dispatcher.dead_letters) == 0


async def test_accepting_family_without_otp_sends_nothing(client: AsyncClient, gateway, make_registration):
    reg = await make_registration()
    r = await client.patch(
        "/api/v1/admin/update-registration", json={"id": reg.id, "familyAccepted": True}
    )
    assert r.status_code == 200
    await app.state.dispatcher.drain()
    assert gateway.images == []


async def test_failed_acceptance_qr_goes_to_dead_letters(client: AsyncClient, gateway, make_registration):
    reg = await make_registration(otp_code="482913")
    gateway.fail_phones.add(reg.phone_number)
    r = await client.patch(
        "/api/v1/admin/update-registration", json={"id": reg.id, "familyAccepted": True}
    )
    assert r.status_code == 200

    await app.state.dispatcher.drain()
    letters = (await client.get("/api/v1/admin/dead-letters")).json()
    assert letters["pending"] == 0
    assert letters["deadLetters"][0]["job"] == f"acceptance-qr:{reg.id}"


async def test_send_invitation_endpoint(client: AsyncClient, gateway, make_registration):
    ok = await make_registration()
    bad = await make_registration()
    gateway.fail_phones.add(bad.phone_number)

    r = await client.post(
        "/api/v1/admin/send-invitation", json={"registrationIds": [ok.id, bad.id]}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["results"]["total"] == 2
    assert body["results"]["sent"] == 1
    assert body["results"]["errors"][0]["id"] == bad.id


async def test_send_invitation_empty_selection(client: AsyncClient):
    r = await client.post("/api/v1/admin/send-invitation", json={"registrationIds": []})
    assert r.status_code == 400
    assert "error" in r.json()


async def test_settings_get_and_patch(client: AsyncClient):
    r = await client.get("/api/v1/admin/settings")
    assert r.status_code == 200
    assert r.json()["settings"]["invitationMessage"] == DEFAULT_INVITATION_MESSAGE

    r = await client.patch(
        "/api/v1/admin/settings",
        json={"registrationSuccessMessage": "Welcome {name} from {city}"},
    )
    assert r.status_code == 200
    current = r.json()["settings"]
    assert current["registrationSuccessMessage"] == "Welcome {name} from {city}"
    assert current["invitationMessage"] == DEFAULT_INVITATION_MESSAGE


async def test_custom_confirmation_template_is_used(client: AsyncClient, gateway):
    await client.patch(
        "/api/v1/admin/settings", json={"registrationSuccessMessage": "Welcome {name} from {city}"}
    )
    r = await client.post(
        "/api/v1/register",
        json={"name": "Noor", "phoneNumber": "07501234567", "city": "أربيل"},
        headers={"X-Forwarded-For": "10.2.0.1"},
    )
    assert r.status_code == 201
    await app.state.dispatcher.drain()
    assert gateway.texts == [("07501234567", "Welcome Noor from أربيل")]
