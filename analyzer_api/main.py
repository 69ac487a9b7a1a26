"""
Power Analyzer Bridge - Backend API

FastAPI application that provides:
- Live power analyzer measurements (GET /data)
- Service information and health checks

Each request to /data polls the device over its own Modbus TCP connection.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from analyzer import __version__
from analyzer.common.logging_setup import get_service_logger
from analyzer_api.routers import data
from analyzer_api.services.settings import get_settings

logger = get_service_logger("api")


# ============================================
# APPLICATION LIFESPAN
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application startup and shutdown events.

    Startup:
    - Validate device settings (missing POWER_ANALYZER_IP aborts startup)
    """
    device = get_settings().device_config()
    logger.info(
        f"Starting Power Analyzer API (device={device.address}, "
        f"unit={device.unit_id}, timeout={device.timeout_s}s)"
    )

    yield

    logger.info("Shutting down API")


# ============================================
# CREATE APPLICATION
# ============================================

app = FastAPI(
    title="Power Analyzer API",
    description="""
    API exposing live measurements of a Modbus TCP power analyzer.

    ## Measurements
    - **Totals**: imported/exported real and reactive power
    - **Phases**: power, apparent power and reactive power for phases 1-3

    Values are raw unsigned 32-bit register contents.
    """,
    version=__version__,
    lifespan=lifespan,
)


# ============================================
# INCLUDE ROUTERS
# ============================================

app.include_router(
    data.router,
    tags=["Measurements"]
)


# ============================================
# ROOT ENDPOINT
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """
    Service information.
    """
    return {
        "name": "Power Analyzer API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Liveness check. Does not contact the device.
    """
    return {
        "status": "healthy",
        "version": __version__,
    }


def run():
    """Console entry point: serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
