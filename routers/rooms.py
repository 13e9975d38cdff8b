from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse, RoomSummary
from constants import ROOM_CAPACITY
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=list[RoomSummary])
async def list_rooms(request: Request):
    registry = request.app.state.registry
    return [
        RoomSummary(
            room_id=room_id,
            participants=registry.room_size(room_id),
            is_full=registry.room_size(room_id) >= ROOM_CAPACITY,
        )
        for room_id in registry.room_ids()
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get the current membership of a room.

    Returns:
    - room_id: Room key chosen by the clients
    - participants: Number of participants currently in the room
    - participant_ids: Their client-supplied ids
    - max_participants: Room capacity
    - is_full: Whether a new participant would be refused
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    registry = request.app.state.registry
    size = registry.room_size(room_id)
    if size == 0:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room_id,
        participants=size,
        participant_ids=registry.participant_ids(room_id),
        max_participants=ROOM_CAPACITY,
        is_full=size >= ROOM_CAPACITY,
    )
