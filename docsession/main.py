"""
docsession - Main Application Entry Point

FastAPI demo application wiring the session middleware to a Redis-backed
document store.

Run with:
    uvicorn docsession.main:app
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import redis.asyncio as redis
from fastapi import FastAPI

from docsession.api.middleware.session import DocumentSessionMiddleware
from docsession.api.routes.session import router as session_router
from docsession.core.config import Settings, get_settings
from docsession.observability.logging import configure_logging, get_logger
from docsession.sessions.store import DocumentStore, RedisDocumentStore


APP_NAME = "docsession"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Store-backed sessions mutated through partial-update operators"


def create_app(
    store: Optional[DocumentStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        store: Document store for sessions. When omitted, a
            RedisDocumentStore is built from settings.redis_url and its
            client is closed on shutdown.
        settings: Application settings (defaults to get_settings()).

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)
    logger = get_logger(__name__)

    redis_client: Optional[redis.Redis] = None
    if store is None:
        redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        store = RedisDocumentStore(
            redis_client,
            key_prefix=settings.redis_key_prefix,
            ttl_seconds=settings.session_ttl_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "starting",
            service=settings.service_name,
            version=APP_VERSION,
            environment=settings.environment,
        )
        app.state.initialized = True
        yield
        logger.info("shutting down", service=settings.service_name)
        app.state.initialized = False
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.session_store = store

    app.add_middleware(DocumentSessionMiddleware, store=store, settings=settings)
    app.include_router(session_router)

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Root endpoint returning basic service information."""
        return {"service": APP_NAME, "version": APP_VERSION}

    return app


app = create_app()
