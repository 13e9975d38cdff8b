import json
from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

from constants import ERROR_INVALID_FORMAT, ERROR_JOIN_FIELDS, ERROR_ROOM_FULL, ROOM_CAPACITY
from errors import (
    InvalidJoinError,
    MalformedMessageError,
    MissingPayloadError,
    NotJoinedError,
    RoomFullError,
    SignalingError,
)
from logging_config import get_logger
from registry import RoomRegistry
from relay import MessageRelay
from schemas.messages import (
    AnswerMessage,
    Envelope,
    ErrorMessage,
    IceCandidateMessage,
    JoinedMessage,
    JoinRequest,
    OfferMessage,
    PeerJoinedMessage,
    PeerLeftMessage,
    PongMessage,
    dump,
)

logger = get_logger(__name__)


class SessionState(Enum):
    UNJOINED = "unjoined"
    JOINED_ALONE = "joined-alone"
    JOINED_PAIRED = "joined-paired"
    LEFT = "left"


# One instance per connection. Handlers are synchronous so a join (capacity
# check, insert, initiator choice) cannot interleave with another connection.
class SessionCoordinator:
    def __init__(self, handle, registry: RoomRegistry, relay: MessageRelay):
        self.handle = handle
        self.registry = registry
        self.relay = relay

        self.room: Optional[str] = None
        self.participant_id: Optional[str] = None
        self.authenticated = False
        self.closed = False

        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "join": self.handle_join,
            "offer": self.handle_offer,
            "answer": self.handle_answer,
            "ice-candidate": self.handle_ice_candidate,
            "leave": lambda data: self.leave(),
            "ping": self.handle_ping,
            "pong": lambda data: None,
        }

    @property
    def state(self) -> SessionState:
        if self.closed:
            return SessionState.LEFT
        if not self.authenticated or self.room is None:
            return SessionState.UNJOINED
        if self.registry.room_size(self.room) >= ROOM_CAPACITY:
            return SessionState.JOINED_PAIRED
        return SessionState.JOINED_ALONE

    @property
    def label(self) -> str:
        return self.participant_id or "UNKNOWN"

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def handle_text(self, raw: str) -> None:
        """Entry point for one inbound text frame. Never raises."""
        try:
            data = self._parse(raw)
            logger.debug(f"[{self.label}] Received: {data['type']}")
            self.dispatch(data)
        except SignalingError as e:
            self._report(e)
        except Exception as e:
            logger.error(f"[{self.label}] Error handling message: {e}", exc_info=True)
            self._reply(ErrorMessage(message=ERROR_INVALID_FORMAT))

    def dispatch(self, data: Dict[str, Any]) -> None:
        handler = self._handlers.get(data["type"])
        if handler is None:
            logger.warning(f"[{self.label}] Unknown message type: {data['type']}")
            return
        handler(data)

    def _parse(self, raw: str) -> Dict[str, Any]:
        try:
            data = json.loads(raw)
        except ValueError:
            raise MalformedMessageError(ERROR_INVALID_FORMAT)
        if not isinstance(data, dict):
            raise MalformedMessageError(ERROR_INVALID_FORMAT)
        try:
            Envelope.model_validate(data)
        except ValidationError:
            raise MalformedMessageError(ERROR_INVALID_FORMAT)
        return data

    def _report(self, error: SignalingError) -> None:
        if error.reply:
            logger.warning(f"[{self.label}] Rejected message: {error.message}")
            self._reply(ErrorMessage(message=error.message))
        else:
            logger.warning(f"[{self.label}] {error.message}")

    def _reply(self, message: BaseModel) -> None:
        self.handle.send(dump(message))

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    def handle_join(self, data: Dict[str, Any]) -> None:
        try:
            request = JoinRequest.model_validate(data)
        except ValidationError:
            raise InvalidJoinError(ERROR_JOIN_FIELDS)
        room, participant_id = request.room, request.id

        if self.room is not None:
            if (self.room, self.participant_id) != (room, participant_id):
                self.leave()
            elif self._is_registered():
                logger.info(f"[{participant_id}] Re-sent join for room {room}")
                self._reply(JoinedMessage(room=room, id=participant_id, participants=self.registry.room_size(room)))
                return
            else:
                # Another connection took over this id; start over as a fresh join
                self._reset()

        already_member = self.registry.has_participant(room, participant_id)
        if self.registry.room_size(room) >= ROOM_CAPACITY and not already_member:
            raise RoomFullError(ERROR_ROOM_FULL)

        displaced = self.registry.put(room, participant_id, self.handle)
        if displaced is not None:
            logger.info(f"[{participant_id}] Reconnecting to room {room}")
        size = self.registry.room_size(room)
        logger.info(f"[{participant_id}] Joined room {room} ({size}/{ROOM_CAPACITY})")

        self.room = room
        self.participant_id = participant_id
        self.authenticated = True

        self._reply(JoinedMessage(room=room, id=participant_id, participants=size))

        if size == ROOM_CAPACITY:
            self._pair(room, participant_id)

    def _pair(self, room: str, participant_id: str) -> None:
        """The participant already present creates the offer, the newcomer waits."""
        others = self.registry.other_participants(room, participant_id)
        if not others:
            return
        other_id, _ = others[0]
        logger.info(f"[ROOM] {room} is full. Initiating peer connection ({other_id} offers to {participant_id})")
        self.relay.send_direct(room, other_id, PeerJoinedMessage(peerId=participant_id, shouldCreateOffer=True))
        self._reply(PeerJoinedMessage(peerId=other_id, shouldCreateOffer=False))

    # ------------------------------------------------------------------
    # Handshake relay
    # ------------------------------------------------------------------

    def handle_offer(self, data: Dict[str, Any]) -> None:
        self._forward("offer", data, OfferMessage)

    def handle_answer(self, data: Dict[str, Any]) -> None:
        self._forward("answer", data, AnswerMessage)

    def handle_ice_candidate(self, data: Dict[str, Any]) -> None:
        self._forward("candidate", data, IceCandidateMessage)

    def _forward(self, field: str, data: Dict[str, Any], message_cls) -> None:
        kind = data["type"]
        if not self.authenticated or self.room is None:
            raise NotJoinedError(f"Received {kind} from unauthenticated client")
        payload = data.get(field)
        if not payload:
            raise MissingPayloadError(f"[{self.participant_id}] Received {kind} without {field}")
        if not self._is_registered():
            raise NotJoinedError(f"Received {kind} from a connection replaced in room {self.room}")

        logger.debug(f"[{self.participant_id}] Forwarding {kind} to room {self.room}")
        message = message_cls(sender=self.participant_id, **{field: payload})
        self.relay.relay(self.room, message, exclude_id=self.participant_id)

    def handle_ping(self, data: Dict[str, Any]) -> None:
        self._reply(PongMessage())

    # ------------------------------------------------------------------
    # Leave / close
    # ------------------------------------------------------------------

    def leave(self) -> None:
        if self.room is None or self.participant_id is None:
            return
        room, participant_id = self.room, self.participant_id
        logger.info(f"[{participant_id}] Leaving room: {room}")

        if self._is_registered():
            self.relay.relay(room, PeerLeftMessage(peerId=participant_id), exclude_id=participant_id)
            self.registry.remove(room, participant_id)
        else:
            logger.info(f"[{participant_id}] Connection was replaced in room {room}, leaving membership untouched")
        self._reset()

    def on_transport_closed(self) -> None:
        logger.info(f"[{self.label}] Connection closed")
        self.leave()
        self.closed = True

    def on_transport_error(self, error: BaseException) -> None:
        logger.error(f"[{self.label}] WebSocket error: {error}", exc_info=error)
        self.leave()
        self.closed = True

    def _is_registered(self) -> bool:
        return self.registry.get_handle(self.room, self.participant_id) is self.handle

    def _reset(self) -> None:
        self.room = None
        self.participant_id = None
        self.authenticated = False
