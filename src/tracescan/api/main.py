"""Main FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import get_settings, settings
from ..services import ScanService
from . import dependencies
from .routes import reports, risk, scans, volumes, wipe

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Creates the scan service and its signing key on startup and discards the
    key on shutdown.
    """
    logger.info("Starting TraceScan...")

    service = ScanService(get_settings())
    service.start()
    dependencies.scan_service = service
    logger.info("Scan service ready (%s), reports in %s", service.os_type, settings.reports_dir)
    logger.info("API server ready at http://%s:%s", settings.api_host, settings.api_port)

    yield

    logger.info("Shutting down TraceScan...")
    service.stop()
    dependencies.scan_service = None


app = FastAPI(
    title="TraceScan API",
    description="Read-only privacy forensics: residue scanning, risk scoring and signed reports",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(volumes.router, prefix="/api/volumes", tags=["Volumes"])
app.include_router(scans.router, prefix="/api/scan", tags=["Scans"])
app.include_router(risk.router, prefix="/api/risk", tags=["Risk"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(wipe.router, prefix="/api/wipe", tags=["Wipe Simulation"])


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    service = dependencies.scan_service
    return {
        "name": "TraceScan",
        "version": __version__,
        "status": "running",
        "os_type": service.os_type if service else None,
    }


@app.get("/health", tags=["Health"])
async def health():
    """Health check endpoint."""
    service = dependencies.scan_service
    return {
        "status": "healthy",
        "signing_service": "ready" if (service and service.signer.is_initialized) else "stopped",
    }
