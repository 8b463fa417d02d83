"""Scan API endpoints: hidden artifacts, previews, browsers and event logs."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...services import ScanService
from ..dependencies import get_scan_service

router = APIRouter()


class HiddenScanRequest(BaseModel):
    """Request schema for a hidden artifact scan."""

    path: str | None = Field(None, description="Directory to scan (default: home directory)")


class PreviewRequest(BaseModel):
    """Request schema for an artifact preview."""

    path: str = Field(..., min_length=1, description="File to preview")


@router.post("/hidden")
async def scan_hidden(
    request: HiddenScanRequest,
    service: ScanService = Depends(get_scan_service),
) -> Any:
    """
    Scan a directory tree for hidden artifacts.

    Results are capped, largest first; ``total_discovered`` counts every
    distinct artifact found before the cap.
    """
    return await service.scan_hidden(request.path)


@router.post("/preview")
async def preview_artifact(
    request: PreviewRequest,
    service: ScanService = Depends(get_scan_service),
) -> Any:
    """Read the head of a file; binary content is redacted."""
    return await service.preview_artifact(request.path)


@router.get("/browsers")
async def scan_browsers(service: ScanService = Depends(get_scan_service)) -> Any:
    """Find installed browser profiles and their privacy-relevant files."""
    return await service.scan_browser_profiles()


@router.get("/event-logs")
async def scan_event_logs(service: ScanService = Depends(get_scan_service)) -> Any:
    """Mine privacy-relevant Windows event log entries."""
    return await service.scan_event_logs()
