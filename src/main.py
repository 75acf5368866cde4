"""Mentoring Pricing API -- Main Application Entry Point

Creates the FastAPI application, configures logging and CORS middleware,
and registers the pricing, discount and bundle routers under the /api/v1
prefix.

Run with::

    uvicorn src.main:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Shutdown:
      - Dispose the shared database engine so pooled connections close.
    """
    logger.info("%s %s starting", settings.app_name, settings.app_version)

    yield

    from src.api.deps import engine

    await engine.dispose()


# ---------------------------------------------------------------------------
# Application instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health():
    """Lightweight health check for load balancers and readiness probes."""
    return {"status": "ok", "version": settings.app_version}


# ---------------------------------------------------------------------------
# Register API route modules
# ---------------------------------------------------------------------------
# Each router already defines its own prefix (e.g. /pricing, /bundles) and
# tags.  We mount them under the shared /api/v1 prefix.
# ---------------------------------------------------------------------------

from src.api.routes import (  # noqa: E402
    bundles,
    discounts,
    pricing,
)

_prefix = settings.api_v1_prefix

app.include_router(pricing.router, prefix=_prefix)
app.include_router(discounts.router, prefix=_prefix)
app.include_router(bundles.router, prefix=_prefix)
