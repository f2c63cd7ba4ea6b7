from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from services.common import ServiceSettings, get_settings
from services.storefront_service.app.main import SERVICE_NAME, create_app


@pytest.mark.asyncio
async def test_health_endpoint_returns_ok(tmp_path) -> None:
    app = create_app(
        ServiceSettings(
            enable_metrics=False,
            enable_tracing=False,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'health.db'}",
        )
    )

    async with lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")
            ready = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert ready.json() == {"status": "ok", "database": "ok"}
    assert app.title == SERVICE_NAME


@pytest.mark.asyncio
async def test_authenticated_routes_report_missing_configuration(tmp_path) -> None:
    app = create_app(
        ServiceSettings(
            enable_metrics=False,
            enable_tracing=False,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'unconfigured.db'}",
            auth_jwt_secret=None,
            signup_hook_secret=None,
        )
    )

    async with lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            cart = await client.get("/cart", headers={"Authorization": "Bearer anything"})
            hook = await client.post("/hooks/identity-created", json={"id": "00000000-0000-0000-0000-000000000001"})

    assert cart.status_code == 503
    assert hook.status_code == 503


def test_create_app_reads_environment_settings(tmp_path, monkeypatch) -> None:
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'from-env.db'}"
    monkeypatch.setenv("SERVICE_DATABASE_URL", database_url)
    monkeypatch.setenv("SERVICE_ENABLE_METRICS", "false")
    monkeypatch.setenv("SERVICE_ENABLE_TRACING", "false")
    get_settings.cache_clear()
    try:
        app = create_app()
        assert get_settings().database_url == database_url
        assert app.state.settings.database_url == database_url
        assert app.title == SERVICE_NAME
    finally:
        get_settings.cache_clear()


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
