# ============================================================================
# SENSOR CONTEXT SERVICE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - FastAPI application entry point
# PURPOSE: HTTP application wiring the pool, services and routes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Sensor Context Service Main Application

FastAPI application that:
1. Opens the database pool on startup
2. Wires the services against it
3. Serves the sensor, platform, context, registration and observation API

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from repositories.database import init_pool, close_pool
from services import build_services
from api.routes import router, set_services, install_error_handlers

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, closes the pool on shutdown.
    """
    logger.info(f"Starting Sensor Context Service v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    pool = await init_pool()
    set_services(build_services(pool))
    logger.info("Services initialized")

    yield

    set_services({})
    await close_pool()
    logger.info("Sensor Context Service stopped")


# Create FastAPI app
app = FastAPI(
    title="Sensor Context Service",
    description="Temporal sensor context, platform hosting and observation enrichment",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Sensor Context Service",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("RELOAD", "").lower() == "true",
    )
