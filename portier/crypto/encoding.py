"""Unpadded URL-safe base64, as used by JWK fields and compact tokens."""

import base64
import re

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def base64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(data: str) -> bytes:
    """Strictly decode unpadded base64url.

    Raises ValueError on padding, characters outside the URL-safe alphabet,
    impossible lengths, or non-zero trailing bits.
    """
    if not _ALPHABET.fullmatch(data):
        raise ValueError("invalid character")
    if len(data) % 4 == 1:
        raise ValueError(f"invalid length {len(data)}")
    decoded = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    if base64url_encode(decoded) != data:
        raise ValueError("invalid trailing bits")
    return decoded
