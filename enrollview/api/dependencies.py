"""Request-scoped dependencies: the document store and the caller."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Callable
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from enrollview.db.engine import async_session_factory, session_scope
from enrollview.models.principal import Principal
from enrollview.repos.document_store import DocumentStore, InMemoryDocumentStore
from enrollview.repos.pg_document_store import PgDocumentStore
from enrollview.services import token_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# Backs every request when DATABASE_URL is unset; tests seed and clear it.
memory_store = InMemoryDocumentStore()


async def get_document_store() -> AsyncGenerator[DocumentStore, None]:
    if async_session_factory is None:
        yield memory_store
        return
    async with session_scope() as session:
        yield PgDocumentStore(session)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(raw_token: Annotated[str, Depends(oauth2_scheme)]) -> Principal:
    """The caller behind a valid bearer token; 401 otherwise."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    principal = token_service.principal_from_claims(claims)
    logger.debug("Caller user=%s roles=%s", principal.user_id, sorted(principal.roles))
    return principal


def require_any_role(roles: set[str]) -> Callable[..., Principal]:
    """Dependency factory: the caller must hold one of `roles`.

    Admins pass every guard.
    """

    def _guard(principal: Annotated[Principal, Depends(require_user)]) -> Principal:
        if principal.is_admin() or principal.has_any_role(roles):
            return principal
        logger.warning(
            "Access denied: user=%s needs one of %s",
            principal.user_id,
            sorted(roles),
            extra={"user_id": principal.user_id},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )

    return _guard
