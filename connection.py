import asyncio
import json
import uuid
from typing import Callable, Optional

from starlette.websockets import WebSocketState

from constants import SEND_QUEUE_MAXSIZE
from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionHandle:
    """Wraps one client's WebSocket.

    ``send`` only enqueues; a writer task owned by ``serve`` drains the queue
    onto the socket. ``serve`` returns when the client disconnects or the
    handle is terminated, and raises if the transport fails.
    """

    def __init__(self, websocket, max_queue: int = SEND_QUEUE_MAXSIZE):
        self.websocket = websocket
        self.connection_id = uuid.uuid4().hex
        self.is_alive = True
        self.is_open = True
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._terminated = asyncio.Event()

    def __repr__(self) -> str:
        return f"<ConnectionHandle {self.connection_id[:8]}>"

    def send(self, message: dict) -> bool:
        if not self.is_open:
            return False
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Send queue full for connection {self.connection_id}, dropping {message.get('type')}")
            return False
        return True

    def probe(self) -> bool:
        """Check the transport and acknowledge the probe if it is still usable.

        Control-frame ping/pong is run by the ASGI server; a peer that stops
        answering is closed there and surfaces as ``websocket.disconnect``.
        Here a probe only fails when the socket is no longer connected or the
        send queue has backed up completely.
        """
        if not self.is_open or not self._transport_connected():
            return False
        if self._outbox.full():
            logger.warning(f"Send queue stalled for connection {self.connection_id}")
            return False
        self.mark_alive()
        return True

    def mark_alive(self) -> None:
        self.is_alive = True

    def terminate(self) -> None:
        """Force the connection down; ``serve`` returns and the caller cleans up."""
        logger.info(f"Terminating connection {self.connection_id}")
        self.is_open = False
        self._terminated.set()

    @property
    def terminated(self) -> bool:
        return self._terminated.is_set()

    async def serve(self, on_text: Callable[[str], None]) -> None:
        reader = asyncio.create_task(self._read_loop(on_text))
        writer = asyncio.create_task(self._write_loop())
        watcher = asyncio.create_task(self._terminated.wait())
        tasks = (reader, writer, watcher)
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self.is_open = False
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for task in done:
            if task is not watcher and task.exception() is not None:
                raise task.exception()

    async def close(self, code: Optional[int] = None) -> None:
        self.is_open = False
        if code is None:
            code = 1001 if self.terminated else 1000
        try:
            await self.websocket.close(code=code)
        except Exception as e:
            logger.debug(f"Error closing WebSocket {self.connection_id}: {e}")

    async def _read_loop(self, on_text: Callable[[str], None]) -> None:
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {self.connection_id} (code {message.get('code')})")
                return
            # Any inbound frame proves the peer is still there
            self.mark_alive()
            text = message.get("text")
            if text is None and message.get("bytes") is not None:
                text = message["bytes"].decode("utf-8", errors="replace")
            if text is not None:
                on_text(text)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            await self.websocket.send_text(json.dumps(message))

    def _transport_connected(self) -> bool:
        for attr in ("client_state", "application_state"):
            state = getattr(self.websocket, attr, WebSocketState.CONNECTED)
            if state != WebSocketState.CONNECTED:
                return False
        return True
