"""Signed bearer tokens.

A token is ``v1.<payload>.<signature>``. The payload is compact JSON in
unpadded URL-safe base64 and the signature is an HMAC-SHA256 of the version and
payload segments.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

TOKEN_VERSION = "v1"


class InvalidTokenError(ValueError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in_seconds(self) -> int:
        return max(int((self.expires_at - self.issued_at).total_seconds()), 0)


def sign_token(
    claims: Mapping[str, Any],
    *,
    secret_key: str,
    ttl: timedelta,
    now: datetime | None = None,
) -> IssuedToken:
    issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
    expires_at = issued_at + ttl
    payload = {
        **claims,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    payload_segment = _encode_segment(
        json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"),
    )
    signing_input = f"{TOKEN_VERSION}.{payload_segment}"
    signature_segment = _encode_segment(_sign(signing_input, secret_key))
    return IssuedToken(
        token=f"{signing_input}.{signature_segment}",
        issued_at=issued_at,
        expires_at=expires_at,
    )


def verify_token(
    token: str,
    *,
    secret_key: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Return the claims of ``token`` or raise ``InvalidTokenError``."""
    segments = token.split(".")
    if len(segments) != 3:
        raise InvalidTokenError("malformed")
    version, payload_segment, signature_segment = segments
    if version != TOKEN_VERSION:
        raise InvalidTokenError("unsupported_version")

    try:
        provided_signature = _decode_segment(signature_segment)
        payload_bytes = _decode_segment(payload_segment)
    except (ValueError, binascii.Error) as exc:
        raise InvalidTokenError("malformed") from exc

    expected_signature = _sign(f"{version}.{payload_segment}", secret_key)
    if not hmac.compare_digest(expected_signature, provided_signature):
        raise InvalidTokenError("bad_signature")

    try:
        claims = json.loads(payload_bytes.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("malformed") from exc
    if not isinstance(claims, dict):
        raise InvalidTokenError("malformed")

    expires_at = claims.get("exp")
    if not isinstance(expires_at, int):
        raise InvalidTokenError("malformed")
    if expires_at <= int((now or datetime.now(UTC)).timestamp()):
        raise InvalidTokenError("expired")
    return claims


def _sign(signing_input: str, secret_key: str) -> bytes:
    return hmac.new(
        secret_key.encode("utf-8"),
        signing_input.encode("ascii"),
        hashlib.sha256,
    ).digest()


def _encode_segment(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _decode_segment(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))
