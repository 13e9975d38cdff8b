from typing import Optional

from pydantic import BaseModel

from logging_config import get_logger
from registry import RoomRegistry
from schemas.messages import dump

logger = get_logger(__name__)


class MessageRelay:
    """Delivers outbound messages to room participants. Holds no session state."""

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def relay(self, room_id: str, message: BaseModel, exclude_id: Optional[str] = None) -> int:
        """Send ``message`` to everyone in the room except ``exclude_id``.

        Handles that are not open are skipped. Returns the number of deliveries.
        """
        payload = dump(message)
        delivered = 0
        for participant_id, handle in self.registry.other_participants(room_id, exclude_id):
            if not handle.is_open:
                logger.debug(f"Skipping closed connection for {participant_id} in room {room_id}")
                continue
            if handle.send(payload):
                delivered += 1
        logger.debug(f"Relayed {payload['type']} in room {room_id} to {delivered} participant(s)")
        return delivered

    def send_direct(self, room_id: str, participant_id: str, message: BaseModel) -> bool:
        handle = self.registry.get_handle(room_id, participant_id)
        if handle is None or not handle.is_open:
            return False
        return handle.send(dump(message))
