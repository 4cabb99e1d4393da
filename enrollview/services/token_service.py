"""Access-token verification (ES256).

Tokens are minted by the platform's auth service and only verified here.
Production sets JWT_PUBLIC_KEY to that service's PEM public key.  Dev and
test leave it unset: an ephemeral key pair is generated on import so the
demo script and tests can mint their own tokens with create_access_token().
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from enrollview.core.config import SETTINGS
from enrollview.models.principal import STUDENT, Principal

ALGORITHM = "ES256"
ISSUER = "auth-service"
AUDIENCE = "auth-service"
ACCESS_TOKEN_TTL_MIN = 15
REQUIRED_CLAIMS = ["sub", "exp", "iat", "jti"]


def _load_keys() -> tuple[ec.EllipticCurvePrivateKey | None, Any]:
    if SETTINGS.jwt_public_key:
        return None, serialization.load_pem_public_key(SETTINGS.jwt_public_key.encode())
    private = ec.generate_private_key(ec.SECP256R1())
    return private, private.public_key()


_private_key, _public_key = _load_keys()


def create_access_token(*, sub: str, roles: list[str] | None = None) -> str:
    """Sign a token with the local key.  Only available without JWT_PUBLIC_KEY."""
    if _private_key is None:
        raise RuntimeError("tokens are verified against JWT_PUBLIC_KEY and cannot be minted")
    issued = datetime.now(UTC)
    return jwt.encode(
        {
            "sub": sub,
            "iss": ISSUER,
            "aud": AUDIENCE,
            "iat": issued,
            "exp": issued + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
            "jti": uuid.uuid4().hex,
            "roles": roles or [STUDENT],
        },
        _private_key,
        algorithm=ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Verified claims.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": REQUIRED_CLAIMS},
    )


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    roles = claims.get("roles") or ()
    if isinstance(roles, str):
        roles = roles.split()
    return Principal(user_id=str(claims["sub"]), roles=frozenset(roles))
