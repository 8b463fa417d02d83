"""Volume API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from ...services import ScanService
from ..dependencies import get_scan_service

router = APIRouter()


@router.get("")
async def list_volumes(service: ScanService = Depends(get_scan_service)) -> Any:
    """
    List mounted volumes with capacity and encryption status.

    Returns an empty list with ``error`` set when enumeration fails.
    """
    return await service.list_volumes()
