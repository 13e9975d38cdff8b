from typing import Any, Dict, List, Optional, Tuple

from logging_config import get_logger

logger = get_logger(__name__)


# A room is deleted as soon as its last participant is removed
class RoomRegistry:
    """In-memory room membership. Every method is synchronous and non-blocking."""

    def __init__(self):
        # room_id -> {participant_id: handle}
        self.rooms: Dict[str, Dict[str, Any]] = {}

    def ensure_room(self, room_id: str) -> Dict[str, Any]:
        room = self.rooms.get(room_id)
        if room is None:
            room = self.rooms[room_id] = {}
            logger.info(f"Created room {room_id}")
        return room

    def room_size(self, room_id: str) -> int:
        return len(self.rooms.get(room_id, {}))

    def put(self, room_id: str, participant_id: str, handle: Any) -> Optional[Any]:
        """Insert or replace a participant. Returns the handle it replaced, if any."""
        room = self.ensure_room(room_id)
        previous = room.get(participant_id)
        room[participant_id] = handle
        if previous is None:
            logger.debug(f"Added {participant_id} to room {room_id} ({len(room)} participants)")
        else:
            logger.debug(f"Replaced handle for {participant_id} in room {room_id}")
        return previous

    def remove(self, room_id: str, participant_id: str) -> Optional[Any]:
        room = self.rooms.get(room_id)
        if room is None:
            return None
        removed = room.pop(participant_id, None)
        if not room:
            del self.rooms[room_id]
            logger.info(f"Deleted empty room {room_id}")
        elif removed is not None:
            logger.info(f"Room {room_id} now has {len(room)} participant(s)")
        return removed

    def other_participants(self, room_id: str, exclude_id: Optional[str] = None) -> List[Tuple[str, Any]]:
        return [
            (participant_id, handle)
            for participant_id, handle in self.rooms.get(room_id, {}).items()
            if participant_id != exclude_id
        ]

    def get_handle(self, room_id: str, participant_id: str) -> Optional[Any]:
        return self.rooms.get(room_id, {}).get(participant_id)

    def has_participant(self, room_id: str, participant_id: str) -> bool:
        return participant_id in self.rooms.get(room_id, {})

    def participant_ids(self, room_id: str) -> List[str]:
        return list(self.rooms.get(room_id, {}))

    def room_ids(self) -> List[str]:
        return list(self.rooms)

    def room_count(self) -> int:
        return len(self.rooms)

    def participant_count(self) -> int:
        return sum(len(room) for room in self.rooms.values())
