from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from customer_match import __version__
from customer_match.core.config import get_settings
from customer_match.core.logging import configure_logging, request_id_middleware
from customer_match.directory import (
    DirectoryConfig,
    create_directory_client,
)
from customer_match.directory.resilience import CircuitBreaker
from customer_match.matching.config import MatchingConfig
from customer_match.sessions.registry import SessionRegistry, set_registry
from customer_match.sessions.router import router as sessions_router

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.ENV, debug=settings.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    logger.info("Starting customer duplicate-matching service...")
    logger.info(f"Environment: {settings.ENV}")

    directory_config = DirectoryConfig.from_settings(settings)
    client = create_directory_client(directory_config)
    registry = SessionRegistry(
        client,
        config=MatchingConfig.from_settings(settings),
        circuit_breaker=CircuitBreaker(directory_config.circuit_breaker),
        idle_timeout=settings.SESSION_IDLE_TIMEOUT_SECONDS,
    )
    set_registry(registry)
    logger.info(
        f"Directory: {client.get_source_name()} "
        f"(debounce {registry.config.debounce_ms} ms)"
    )

    yield

    # Shutdown
    logger.info("Shutting down customer duplicate-matching service...")
    closed = registry.dispose_all()
    if closed:
        logger.info(f"Disposed {len(closed)} open session(s)")
    await client.aclose()
    set_registry(None)
    logger.info("Shutdown complete")


app = FastAPI(title="Customer Duplicate Matching", version=__version__, lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.include_router(sessions_router)


@app.get("/")
def health_check():
    logger.debug("Health check endpoint called")
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    logger.debug(f"Healthz endpoint called (env: {settings.ENV})")
    return {"status": "healthy", "env": settings.ENV}
