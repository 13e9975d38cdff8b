# Errors with `reply` set are sent back to the client as an `error` message,
# the rest are only logged.
class SignalingError(Exception):
    reply = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedMessageError(SignalingError):
    """The frame is not a JSON object with a string ``type``."""
    reply = True


class InvalidJoinError(SignalingError):
    reply = True


class RoomFullError(SignalingError):
    reply = True


class MissingPayloadError(SignalingError):
    """offer/answer/ice-candidate without its payload field."""


class NotJoinedError(SignalingError):
    """A room action from a connection that is not (or no longer) a member."""
