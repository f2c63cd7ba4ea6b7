"""Dependency helpers for the storefront service."""

from __future__ import annotations

import hmac
from collections.abc import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.common import ServiceSettings, lifespan_session

from .auth import Identity, get_identity, get_optional_identity
from .client import StoreClient
from .services import CartOrchestrator, ProfileService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an AsyncSession whose transaction spans the whole request."""

    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_service_settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


def get_client(
    session: AsyncSession = Depends(get_session),
    identity: Identity = Depends(get_identity),
) -> StoreClient:
    """Return a persistence client scoped to the authenticated caller."""

    return StoreClient(session, identity.user_id)


def get_public_client(
    session: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_optional_identity),
) -> StoreClient:
    return StoreClient(session, identity.user_id if identity else None)


def get_orchestrator(client: StoreClient = Depends(get_client)) -> CartOrchestrator:
    return CartOrchestrator(client)


def get_public_orchestrator(client: StoreClient = Depends(get_public_client)) -> CartOrchestrator:
    return CartOrchestrator(client)


def get_profile_service(client: StoreClient = Depends(get_client)) -> ProfileService:
    return ProfileService(client)


def get_public_profile_service(client: StoreClient = Depends(get_public_client)) -> ProfileService:
    return ProfileService(client)


def verify_hook_secret(
    settings: ServiceSettings = Depends(get_service_settings),
    hook_secret: str | None = Header(default=None, alias="X-Hook-Secret"),
) -> None:
    """Only the auth provider, holding the shared hook secret, may call signup hooks."""

    if not settings.signup_hook_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Signup hook is not configured",
        )
    if hook_secret is None or not hmac.compare_digest(hook_secret, settings.signup_hook_secret):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid hook secret")


def get_provisioning_service(
    session: AsyncSession = Depends(get_session),
    _verified: None = Depends(verify_hook_secret),
) -> ProfileService:
    return ProfileService(StoreClient(session, None, privileged=True))
