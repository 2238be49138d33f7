from __future__ import annotations

import io

import qrcode

from ..core.exceptions import ValidationError


def build_qr_payload(qr_token: str, session_id: int) -> str:
    return f"{qr_token}:{int(session_id)}"


def parse_qr_payload(qr_token: str, qr_data: str) -> int:
    """Return the session id encoded in a scanned QR payload."""

    token, sep, session_part = (qr_data or "").strip().rpartition(":")
    if not sep or token != qr_token:
        raise ValidationError("Invalid QR code")
    if not session_part.isdigit() or int(session_part) <= 0:
        raise ValidationError("Invalid QR code")
    return int(session_part)


def render_qr_png(payload: str) -> io.BytesIO:
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf)
    buf.seek(0)
    return buf
