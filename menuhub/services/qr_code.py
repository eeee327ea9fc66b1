from __future__ import annotations

import base64
import io

import segno

QR_SCALE = 10
QR_BORDER = 2


class QRCodeGenerator:
    """PNG QR codes pointing customers at a restaurant menu."""

    def __init__(self, *, scale: int = QR_SCALE, border: int = QR_BORDER, dark: str = "#000000") -> None:
        self.scale = scale
        self.border = border
        self.dark = dark

    def generate(self, url: str) -> bytes:
        if not url:
            raise ValueError("QR code needs a url")
        qr = segno.make(url, error="m")
        buffer = io.BytesIO()
        qr.save(buffer, kind="png", scale=self.scale, border=self.border, dark=self.dark, light="#ffffff")
        return buffer.getvalue()

    @staticmethod
    def to_data_url(png: bytes) -> str:
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
