import asyncio
import json
import uuid

import pytest
from starlette.websockets import WebSocketState

from coordinator import SessionCoordinator
from registry import RoomRegistry
from relay import MessageRelay


class FakeHandle:
    """In-memory stand-in for ConnectionHandle that records what it was sent."""

    def __init__(self, name=None, healthy=True):
        self.connection_id = name or uuid.uuid4().hex
        self.sent = []
        self.is_open = True
        self.is_alive = True
        self.healthy = healthy
        self.terminated = False
        self.probes = 0

    def send(self, message):
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    def probe(self):
        self.probes += 1
        if self.is_open and self.healthy:
            self.is_alive = True
            return True
        return False

    def terminate(self):
        self.terminated = True
        self.is_open = False

    def of_type(self, message_type):
        return [m for m in self.sent if m["type"] == message_type]

    def clear(self):
        self.sent.clear()


class FakeWebSocket:
    """Minimal ASGI-style WebSocket: feed() queues inbound frames, sent collects outbound ones."""

    def __init__(self):
        self.inbound = asyncio.Queue()
        self.sent = []
        self.close_code = None
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    def feed(self, message):
        self.inbound.put_nowait({"type": "websocket.receive", "text": json.dumps(message)})

    def drop(self):
        """The transport died without a close frame reaching the app."""
        self.client_state = WebSocketState.DISCONNECTED

    def disconnect(self):
        self.inbound.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def receive(self):
        return await self.inbound.get()

    async def send_text(self, text):
        self.sent.append(json.loads(text))

    async def close(self, code=1000):
        self.close_code = code


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def relay(registry):
    return MessageRelay(registry)


@pytest.fixture
def connect(registry, relay):
    """Factory returning (handle, coordinator) pairs bound to the shared registry."""
    def _connect(name=None):
        handle = FakeHandle(name)
        return handle, SessionCoordinator(handle, registry, relay)
    return _connect
