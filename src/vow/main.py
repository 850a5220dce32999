"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vow.config import Settings, get_settings
from vow.database import close_db
from vow.health.router import router as health_router
from vow.middleware import setup_middleware
from vow.moderation.router import router as admin_router
from vow.promises.router import router as promises_router
from vow.redis_client import close_redis, init_redis
from vow.stats.service import recompute
from vow.storage import open_store
from vow.users.router import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    store = await open_store(settings)
    app.state.store = store
    # Bring the materialized stats in line with whatever is on disk.
    await recompute(store)
    if settings.redis_url:
        await init_redis(settings.redis_url)

    yield

    await store.close()
    await close_db()
    await close_redis()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Vow API",
        description="Promise tracking with reputation, moderation and global stats",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(promises_router)
    app.include_router(users_router)
    app.include_router(admin_router)

    return app


app = create_app()
