"""Signing and verification of HS256 bearer tokens.

Plain functions only. The auth dependencies call ``decode_token``; the test
suite and admin tooling call ``create_token``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "lokale-portalen"
SUPPORTED_ALGORITHM = "HS256"

# A token only verifies for the purpose it was issued for; API auth accepts
# access tokens, the newsletter unsubscribe link carries its own kind.
ACCESS_PURPOSE = "access"
UNSUBSCRIBE_PURPOSE = "unsubscribe"


@dataclass(frozen=True)
class TokenPayload:
    """Claims the API cares about."""
    sub: str
    role: str
    exp: datetime
    purpose: str = ACCESS_PURPOSE


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    expires_hours: int = 24,
    purpose: str = ACCESS_PURPOSE,
) -> str:
    """Return a signed token for ``subject`` (a user id) with a ``role`` claim.

    Raises:
        ValueError: For any algorithm other than HS256.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued_at = int(time.time())
    header = _b64encode(json.dumps({"alg": algorithm, "typ": "JWT"}).encode())
    claims = _b64encode(json.dumps({
        "sub": subject,
        "role": role,
        "purpose": purpose,
        "iss": ISSUER,
        "iat": issued_at,
        "exp": issued_at + expires_hours * 3600,
    }).encode())
    signing_input = header + b"." + claims
    return (signing_input + b"." + _b64encode(_sign(signing_input, secret))).decode()


def decode_token(
    token: str,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    purpose: str = ACCESS_PURPOSE,
) -> Optional[TokenPayload]:
    """Verify ``token`` and return its payload.

    Returns ``None`` for a bad signature, a foreign issuer, another purpose,
    an expired token or anything malformed; the caller decides whether
    absence is an error.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        return None
    try:
        header, claims, signature = token.encode().split(b".")
        if not hmac.compare_digest(_sign(header + b"." + claims, secret), _b64decode(signature)):
            return None

        payload = json.loads(_b64decode(claims))
        if payload.get("iss") != ISSUER:
            return None
        if payload.get("purpose", ACCESS_PURPOSE) != purpose:
            return None

        expires = int(payload["exp"])
        if time.time() > expires:
            return None

        return TokenPayload(
            sub=str(payload["sub"]),
            role=str(payload.get("role", "")),
            exp=datetime.fromtimestamp(expires, tz=timezone.utc),
            purpose=purpose,
        )
    except (json.JSONDecodeError, KeyError, ValueError, TypeError):
        return None
