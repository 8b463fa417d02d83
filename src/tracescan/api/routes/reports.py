"""Signed report API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...services import ScanService
from ..dependencies import get_scan_service

router = APIRouter()


class GenerateReportRequest(BaseModel):
    """Request schema for report generation."""

    scan_data: dict[str, Any] = Field(default_factory=dict, description="Results to embed in the report")


class VerifyReportRequest(BaseModel):
    """Request schema for report verification."""

    path: str = Field(..., min_length=1, description="Path to a report JSON file")


@router.post("")
async def generate_report(
    request: GenerateReportRequest,
    service: ScanService = Depends(get_scan_service),
) -> Any:
    """Sign the scan data and write the JSON and PDF report pair."""
    return await service.generate_report(request.scan_data)


@router.post("/verify")
async def verify_report(
    request: VerifyReportRequest,
    service: ScanService = Depends(get_scan_service),
) -> Any:
    """Check a persisted report's signature."""
    return await service.verify_report(request.path)
