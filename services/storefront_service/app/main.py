from contextlib import asynccontextmanager

from fastapi import FastAPI

from services.common import (
    DEFAULT_APP_NAME,
    ServiceSettings,
    build_app,
    configure_logging,
    create_schema,
    dispose_engines,
    get_session_factory,
    get_settings,
    resolve_database_url,
)

from .api.cart import router as cart_router
from .api.health import router as health_router
from .api.hooks import router as hooks_router
from .api.items import router as items_router
from .api.orders import router as orders_router
from .api.pages import router as pages_router
from .api.profiles import router as profiles_router
from .errors import register_error_handlers
from .models import Base
from .seed import seed_sample_items

SERVICE_NAME = "Storefront Service"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./storefront_service.db"


def create_app(settings: ServiceSettings | None = None) -> FastAPI:
    """Create the Storefront Service FastAPI application."""

    resolved_settings = settings or get_settings()
    if resolved_settings.app_name == DEFAULT_APP_NAME:
        resolved_settings = resolved_settings.model_copy(update={"app_name": SERVICE_NAME})
    configure_logging(resolved_settings)
    database_url = resolve_database_url(resolved_settings, DEFAULT_DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session_factory = get_session_factory(database_url)
        app.state.session_factory = session_factory
        try:
            if resolved_settings.create_schema:
                await create_schema(database_url, Base)
            if resolved_settings.seed_sample_items:
                await seed_sample_items(session_factory)
            yield
        finally:
            app.state.session_factory = None
            await dispose_engines()

    app = build_app(resolved_settings, lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(pages_router)
    app.include_router(items_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(profiles_router)
    app.include_router(hooks_router)
    return app


app = create_app()
