"""FastAPI application factory.

Learn: create_app() returns a configured FastAPI instance. The lifespan
handles the pieces that need I/O at startup/shutdown (Redis pool, DB
engine). Everything that is plain in-memory state, like the realtime
connection registry, is built right here so it exists even when the
lifespan doesn't run (httpx ASGITransport in tests).
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from constructivo import __version__
from constructivo.api import api_router
from constructivo.config import settings
from constructivo.middleware.rate_limit import RateLimitMiddleware
from constructivo.middleware.request_id import RequestIdMiddleware
from constructivo.middleware.security import SecurityHeadersMiddleware
from constructivo.realtime.invalidation import install_registry
from constructivo.realtime.registry import ConnectionRegistry
from constructivo.realtime.websocket import router as ws_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "constructivo.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from constructivo.db.redis_pool import close_redis, init_redis
    try:
        await init_redis()
        logger.info("constructivo.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis only backs rate limiting; run without it
        logger.warning("constructivo.redis_unavailable", error=str(e))

    yield

    logger.info(
        "constructivo.shutdown",
        open_connections=len(app.state.admin_connections),
    )
    await close_redis()

    from constructivo.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Constructivo",
        description="Construction company site API with live admin cache invalidation",
        version=__version__,
        lifespan=lifespan,
    )

    # One registry per app; also installed process-wide for code outside requests
    registry = ConnectionRegistry(outbox_size=settings.ws_outbox_size)
    app.state.admin_connections = registry
    install_registry(registry)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration:
    # RequestId → Security → RateLimit → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        public_write_rpm=settings.rate_limit_public_write_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    # The admin dashboard connects to the site root: ws(s)://host/
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: constructivo.main:app)
app = create_app()
