"""Risk scoring API endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from ...services import ScanService
from ..dependencies import get_scan_service

router = APIRouter()


@router.get("")
async def compute_risk(service: ScanService = Depends(get_scan_service)) -> Any:
    """
    Score the host's forensic residue.

    Starts at 50: swap +20, snapshots +25, encryption -30, more than 20%
    free space +15, clamped to 0-100.
    """
    return await service.compute_risk()
