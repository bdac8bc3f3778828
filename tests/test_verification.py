# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""QR check-in: unknown codes, first scan, repeat scans."""

import pytest

from eventreg_server.errors import NotFoundError, ValidationError
from eventreg_server.services.verification import normalize_code, verify_code


def test_normalize_code():
    assert normalize_code("  abcd1234\n") == "ABCD1234"
    assert normalize_code(None) == ""


async def test_blank_code_is_rejected(db):
    with pytest.raises(ValidationError):
        await verify_code(db, "   ")


async def test_unknown_code_changes_nothing(db, make_registration):
    reg = await make_registration(invitation_code="REALCODE")
    with pytest.raises(NotFoundError) as exc_info:
        await verify_code(db, "NOPE0000")
    assert exc_info.value.extra == {"valid": False}
    await db.refresh(reg)
    assert reg.qr_code_scanned is False
    assert reg.attended is False


async def test_first_scan_marks_attended(db, make_registration):
    reg = await make_registration(invitation_code="ABCD1234")
    result = await verify_code(db, "ABCD1234")
    assert result.already_scanned is False
    assert result.scanned_at is not None
    assert result.registration.id == reg.id
    await db.refresh(reg)
    assert reg.qr_code_scanned is True
    assert reg.attended is True


async def test_second_scan_reports_original_time(db, make_registration):
    await make_registration(invitation_code="ABCD1234")
    first = await verify_code(db, "abcd1234 ")
    second = await verify_code(db, "ABCD1234")
    assert first.already_scanned is False
    assert second.already_scanned is True
    assert second.scanned_at == first.scanned_at


async def test_verify_endpoint(client, make_registration):
    reg = await make_registration(
        name="Omar", invitation_code="QRCODE01", first_person_name="Huda"
    )

    r = await client.post("/api/v1/admin/verify-qr", json={"qrCode": " qrcode01"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True and data["valid"] is True
    assert data["alreadyScanned"] is False
    assert data["registration"] == {
        "id": reg.id,
        "name": "Omar",
        "city": "بغداد",
        "firstPersonName": "Huda",
        "secondPersonName": None,
    }

    again = await client.post("/api/v1/admin/verify-qr", json={"qrCode": "QRCODE01"})
    assert again.status_code == 200
    assert again.json()["alreadyScanned"] is True
    assert again.json()["scannedAt"] == data["scannedAt"]


async def test_verify_endpoint_unknown_code(client):
    r = await client.post("/api/v1/admin/verify-qr", json={"qrCode": "MISSING1"})
    assert r.status_code == 404
    body = r.json()
    assert body["valid"] is False
    assert body["error"]
