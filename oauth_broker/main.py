"""
OAuth Handshake Broker
FastAPI Application Entry Point
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI

from oauth_broker.config import Settings, settings
from oauth_broker.core.errors import global_exception_handler
from oauth_broker.database import close_db
from oauth_broker.handshake.broker import AuthBroker
from oauth_broker.handshake.exceptions import HandshakeError
from oauth_broker.handshake.registry import HandshakeRegistry
from oauth_broker.handshake.router import router as handshake_router
from oauth_broker.handshake.sinks import build_credential_sink
from oauth_broker.integrations.google import GoogleOAuth

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


def build_broker(config: Settings) -> AuthBroker:
    """Wire the registry, Google provider and configured sink together."""
    registry = HandshakeRegistry(
        ttl=timedelta(seconds=config.state_ttl_seconds),
        sweep_interval=timedelta(seconds=config.state_sweep_interval_seconds),
    )
    return AuthBroker(
        registry=registry,
        provider=GoogleOAuth(config),
        sink=build_credential_sink(config),
    )


async def sweep_expired_states(registry: HandshakeRegistry, interval_seconds: float) -> None:
    """Periodically drop abandoned handshakes so they cannot accumulate."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = registry.sweep()
        if removed:
            logger.info("Removed %d abandoned handshake(s)", removed)


def sweep_interval_seconds(registry: HandshakeRegistry) -> float:
    """Background sweep period; falls back to the TTL when access-triggered sweeps are off."""
    interval = registry.sweep_interval or registry.ttl
    return interval.total_seconds()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.
    Runs the state sweeper and releases database connections on shutdown.
    """
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    logger.info("Environment: %s, credential sink: %s", settings.environment, settings.credential_sink)

    registry = app.state.broker.registry
    sweeper = asyncio.create_task(
        sweep_expired_states(registry, sweep_interval_seconds(registry))
    )

    yield

    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    await close_db()
    logger.info("%s shutdown complete", settings.app_name)


def create_application(broker: Optional[AuthBroker] = None) -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.

    Args:
        broker: Pre-built broker (tests inject one); built from settings otherwise
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-user Google OAuth handshake broker",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.broker = broker or build_broker(settings)
    app.add_exception_handler(HandshakeError, global_exception_handler)
    app.add_exception_handler(ValueError, global_exception_handler)

    register_routers(app)

    return app


def register_routers(app: FastAPI) -> None:
    """
    Register all API routers.
    """
    # Health check endpoint (always available)
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "pending_handshakes": app.state.broker.registry.pending_count,
        }

    app.include_router(handshake_router)


# Create the application instance
app = create_application()


if __name__ == "__main__":
    uvicorn.run(
        "oauth_broker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
