from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Literal


# Inbound

class Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str

class JoinRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    room: str = Field(min_length=1)
    id: str = Field(min_length=1)


# Outbound

class JoinedMessage(BaseModel):
    type: Literal["joined"] = "joined"
    room: str
    id: str
    participants: int

class PeerJoinedMessage(BaseModel):
    type: Literal["peer-joined"] = "peer-joined"
    peerId: str
    shouldCreateOffer: bool

class PeerLeftMessage(BaseModel):
    type: Literal["peer-left"] = "peer-left"
    peerId: str

class RelayedMessage(BaseModel):
    """Base for relayed handshake payloads; ``from`` is the sender's id."""
    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(alias="from")

class OfferMessage(RelayedMessage):
    type: Literal["offer"] = "offer"
    offer: Any

class AnswerMessage(RelayedMessage):
    type: Literal["answer"] = "answer"
    answer: Any

class IceCandidateMessage(RelayedMessage):
    type: Literal["ice-candidate"] = "ice-candidate"
    candidate: Any

class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str

class PongMessage(BaseModel):
    type: Literal["pong"] = "pong"


def dump(message: BaseModel) -> dict:
    """Wire representation of an outbound message."""
    return message.model_dump(by_alias=True)
