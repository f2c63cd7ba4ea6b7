"""Verification of identity tokens issued by the external auth provider."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from services.common import ServiceSettings, bind_user

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class InvalidTokenError(ValueError):
    pass


def decode_identity(token: str, settings: ServiceSettings) -> Identity:
    """Validate ``token`` against the shared secret and extract the identity claims."""

    if not settings.auth_jwt_secret:
        raise InvalidTokenError("No token secret configured")
    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    subject = claims.get("sub")
    try:
        user_id = uuid.UUID(str(subject))
    except ValueError as exc:
        raise InvalidTokenError("Token subject is not an identity id") from exc

    metadata = claims.get("user_metadata")
    return Identity(
        user_id=user_id,
        email=claims.get("email"),
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


async def get_optional_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """Return the caller identity, or ``None`` for anonymous or unverifiable callers."""

    if credentials is None:
        return None
    try:
        identity = decode_identity(credentials.credentials, _settings(request))
    except InvalidTokenError:
        return None
    bind_user(identity.user_id)
    return identity


async def get_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    settings = _settings(request)
    if not settings.auth_jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        identity = decode_identity(credentials.credentials, settings)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    bind_user(identity.user_id)
    return identity
