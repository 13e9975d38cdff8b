from pydantic import BaseModel


class RoomSummary(BaseModel):
    room_id: str
    participants: int
    is_full: bool

class RoomDetailsResponse(BaseModel):
    room_id: str
    participants: int
    participant_ids: list[str]
    max_participants: int
    is_full: bool

class ServerStatusResponse(BaseModel):
    status: str
    rooms: int
    participants: int
    connections: int
    timestamp: str
