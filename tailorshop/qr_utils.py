"""Utility functions for generating QR codes for jobs and garment parts.

This module centralises QR code generation to avoid duplication across
different parts of the application.  Codes encode plain strings (the job or
part ``qr_code`` value) so that any handheld scanner can read them back and
post them to the scan endpoint unchanged.
"""

import os
import secrets
import time
from io import BytesIO

import qrcode

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
    return out or "0"


def new_code(prefix: str) -> str:
    """Return a fresh code such as ``PART-lr3k9x2a-3F9A0C1D2E4B5A6C``.

    The middle segment is the millisecond timestamp in base 36 and the tail is
    64 random bits, so codes are unique without a database round trip.
    """

    stamp = _base36(int(time.time() * 1000))
    return f"{prefix}-{stamp}-{secrets.token_hex(8).upper()}"


def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path


def qr_png_bytes(payload: str) -> bytes:
    """Render ``payload`` as a PNG and return the raw bytes."""

    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_part_qr(qr_dir: str, part) -> str:
    """Write the QR image for a garment part and return the file path."""

    ensure_dir(qr_dir)
    fp = os.path.join(qr_dir, f"part_{part.id}.png")
    with open(fp, "wb") as fh:
        fh.write(qr_png_bytes(part.qr_code))
    return fp


def make_job_qr(qr_dir: str, job) -> str:
    ensure_dir(qr_dir)
    fp = os.path.join(qr_dir, f"job_{job.job_number}.png")
    with open(fp, "wb") as fh:
        fh.write(qr_png_bytes(job.qr_code))
    return fp
