"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from userdeck import __version__
from userdeck.api.routers import auth as auth_router
from userdeck.api.routers import oauth2 as oauth2_router
from userdeck.api.routers import users as users_router
from userdeck.core.cache import close_cache, get_cache
from userdeck.core.config import get_settings
from userdeck.core.database import close_engine, get_engine
from userdeck.core.limiter import limiter
from userdeck.core.logging import configure_logging, get_logger
from userdeck.core.tasks import get_task_queue

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    configure_logging()
    settings = get_settings()
    logger.info("Starting userdeck", debug=settings.app_debug)

    # Warm up DB connection pool and cache client
    get_engine()
    get_cache()

    worker = asyncio.create_task(get_task_queue().run(), name="task-queue-worker")

    yield

    worker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await worker
    await close_cache()
    await close_engine()
    logger.info("userdeck stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="userdeck",
        description="User accounts, authentication and profile API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_prefix = "/api/v1"
    app.include_router(auth_router.router, prefix=api_prefix)
    app.include_router(oauth2_router.router, prefix=api_prefix)
    app.include_router(users_router.router, prefix=api_prefix)

    # Uploaded pictures
    app.mount(
        "/media",
        StaticFiles(directory=str(settings.media_root), check_dir=False),
        name="media",
    )

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
