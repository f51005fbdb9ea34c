"""Signing primitives for session tokens.

Tokens are HMAC-SHA256 signatures over compact JSON payloads; both halves are
URL-safe base64 without padding.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import re
from collections.abc import Mapping
from typing import Any

TOKEN_DELIMITER = "."

_B64URL_CHARS = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as URL-safe base64 with padding stripped."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(data: str) -> bytes:
    """Decode URL-safe base64, accepting omitted padding.

    Raises:
        ValueError: If the input contains characters outside the URL-safe
            alphabet, has an impossible length, or is not the canonical
            encoding of its bytes.
    """
    if not _B64URL_CHARS.fullmatch(data):
        raise ValueError("Invalid base64url encoding: unexpected characters")
    padding = "=" * (-len(data) % 4)
    try:
        decoded = base64.b64decode((data + padding).encode("ascii"), altchars=b"-_", validate=True)
    except binascii.Error as err:
        raise ValueError(f"Invalid base64url encoding: {err}") from err
    # Unused trailing bits must be zero so each byte string has one encoding.
    if b64url_encode(decoded) != data:
        raise ValueError("Invalid base64url encoding: non-canonical trailing bits")
    return decoded


def serialize_payload(payload: Mapping[str, Any]) -> bytes:
    """Return the canonical byte serialization of a token payload."""
    return json.dumps(dict(payload), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_mac(secret: str, message: bytes) -> bytes:
    """Return the HMAC-SHA256 of ``message`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def verify_mac(secret: str, message: bytes, signature: bytes) -> bool:
    """Constant-time check that ``signature`` is the MAC of ``message``."""
    return hmac.compare_digest(compute_mac(secret, message), signature)


def sign_token(secret: str, payload: Mapping[str, Any]) -> str:
    """Serialize and sign ``payload`` into the two-segment wire format."""
    payload_bytes = serialize_payload(payload)
    signature = compute_mac(secret, payload_bytes)
    return f"{b64url_encode(payload_bytes)}{TOKEN_DELIMITER}{b64url_encode(signature)}"


def split_token(token: str) -> tuple[bytes, str]:
    """Split a token into raw payload bytes and the encoded signature segment.

    Raises:
        ValueError: If the token does not have exactly two non-empty segments
            or the payload segment is not decodable.
    """
    parts = token.split(TOKEN_DELIMITER)
    if len(parts) != 2 or not all(parts):
        raise ValueError("Token must have exactly two non-empty segments")
    payload_b64, signature_b64 = parts
    return b64url_decode(payload_b64), signature_b64
