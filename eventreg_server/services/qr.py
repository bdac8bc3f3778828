# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""QR code rendering to base64 PNG."""

import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def render_qr_base64(data: str) -> str:
    """Render data as a black-on-white PNG QR code; return base64 (no data: prefix)."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
