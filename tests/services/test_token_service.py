from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from enrollview.services import token_service


def test_round_trip_claims() -> None:
    token = token_service.create_access_token(sub="u1", roles=["instructor"])
    claims = token_service.decode_access_token(token)
    assert claims["sub"] == "u1"
    assert claims["roles"] == ["instructor"]
    assert claims["iss"] == token_service.ISSUER


def test_default_role_is_student() -> None:
    claims = token_service.decode_access_token(token_service.create_access_token(sub="u1"))
    assert claims["roles"] == ["student"]


def test_expired_token_rejected() -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": "u1",
            "iss": token_service.ISSUER,
            "aud": token_service.AUDIENCE,
            "iat": now - timedelta(hours=1),
            "exp": now - timedelta(minutes=1),
            "jti": "j1",
        },
        token_service._private_key,
        algorithm=token_service.ALGORITHM,
    )
    with pytest.raises(jwt.ExpiredSignatureError):
        token_service.decode_access_token(token)


def test_wrong_audience_rejected() -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": "u1",
            "iss": token_service.ISSUER,
            "aud": "someone-else",
            "iat": now,
            "exp": now + timedelta(minutes=5),
            "jti": "j1",
        },
        token_service._private_key,
        algorithm=token_service.ALGORITHM,
    )
    with pytest.raises(jwt.InvalidTokenError):
        token_service.decode_access_token(token)
