"""Wipe simulation progress stream (server-sent events)."""

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from ...services import ScanService
from ...wipe import WipeSimulation
from ..dependencies import get_scan_service

router = APIRouter()


async def _event_stream(request: Request, simulation: WipeSimulation) -> AsyncIterator[str]:
    async for event in simulation.stream():
        if await request.is_disconnected():
            simulation.cancel()
        yield f"data: {json.dumps(event.to_dict())}\n\n"


@router.get("/simulate")
async def simulate_wipe(
    request: Request,
    target: str = Query("", description="Label shown in progress messages"),
    service: ScanService = Depends(get_scan_service),
) -> StreamingResponse:
    """
    Stream simulated wipe progress. Nothing is written to any volume.

    Each ``data:`` line carries one progress event; the last one has
    ``completed`` set.
    """
    simulation = service.wipe_simulation(target)
    return StreamingResponse(
        _event_stream(request, simulation),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
