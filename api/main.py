#!/usr/bin/env python3
"""
Grouping API - HTTP API layer for the group partitioning engine.

This is the main FastAPI application. It exposes:
- Stateless partition generation, candidate comparison and scoring
- The scenario lifecycle (draft, reset, publish, archive) per activity
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from grouping.config import ConfigLoader
from grouping.logging_config import configure_logging, get_logger

from .dependencies import authenticate_pb, pb
from .settings import get_settings

# Configure unified logging format
# Format: 2026-01-06T14:05:52Z [api] LEVEL message
configure_logging(source="api")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()

    # Startup
    if not settings.uses_pocketbase:
        ConfigLoader.initialize()
        logger.info("Using in-memory scenario store; engine config from environment and defaults")
    elif settings.skip_pb_auth:
        ConfigLoader.initialize()
        logger.warning("Skipping PocketBase authentication (SKIP_PB_AUTH=true)")
    else:
        await authenticate_pb()
        ConfigLoader.initialize(pb_client=pb)
        logger.info("Engine config backed by PocketBase")

    yield

    ConfigLoader.reset()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Grouping API", description="Group partitioning and scenario API", lifespan=lifespan)

    # Load settings
    settings = get_settings()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Register routers
    from .routers import engine, scenarios

    app.include_router(engine.router)
    app.include_router(scenarios.router)

    # Core endpoints (not in a router)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "grouping-api"}

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_config=None)
