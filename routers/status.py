from datetime import datetime

from fastapi import APIRouter, Request
from schemas.rooms import ServerStatusResponse

status_router = APIRouter(tags=["status"])


@status_router.get("/health")
async def health():
    return {"status": "ok"}


@status_router.get("/status", response_model=ServerStatusResponse)
async def server_status(request: Request):
    registry = request.app.state.registry
    monitor = request.app.state.monitor
    return ServerStatusResponse(
        status="active",
        rooms=registry.room_count(),
        participants=registry.participant_count(),
        connections=len(monitor.connections),
        timestamp=datetime.now().isoformat(),
    )
