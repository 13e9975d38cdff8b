from contextlib import asynccontextmanager
import os
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from connection import ConnectionHandle
from constants import CORS_ALLOWED_ORIGINS, HEARTBEAT_INTERVAL_SECONDS, LOG_FILE, LOG_LEVEL, STATIC_DIR
from coordinator import SessionCoordinator
from liveness import LivenessMonitor
from logging_config import get_logger, setup_logging
from registry import RoomRegistry
from relay import MessageRelay
from routers.rooms import rooms_router
from routers.status import status_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def handle_connection(websocket, registry: RoomRegistry, relay: MessageRelay, monitor: LivenessMonitor) -> None:
    """Run one accepted WebSocket until it closes, fails or is terminated.

    Every way out ends in the coordinator's leave path.
    """
    handle = ConnectionHandle(websocket)
    coordinator = SessionCoordinator(handle, registry, relay)
    monitor.track(handle)
    logger.info(f"New WebSocket connection {handle.connection_id}")

    error = None
    try:
        await handle.serve(coordinator.handle_text)
    except Exception as e:
        error = e
    finally:
        # Synchronous cleanup first so it also runs when the task is cancelled
        monitor.untrack(handle)
        if error is not None:
            coordinator.on_transport_error(error)
        else:
            coordinator.on_transport_closed()
        await handle.close()


def create_app(
    registry: Optional[RoomRegistry] = None,
    heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
    static_dir: Optional[str] = STATIC_DIR,
) -> FastAPI:
    registry = registry if registry is not None else RoomRegistry()
    relay = MessageRelay(registry)
    monitor = LivenessMonitor(interval=heartbeat_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        monitor.start()
        yield
        await monitor.stop()

    app = FastAPI(title="Rendezvous Relay", lifespan=lifespan)
    app.state.registry = registry
    app.state.relay = relay
    app.state.monitor = monitor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(status_router)
    app.include_router(rooms_router)

    async def signaling_endpoint(websocket: WebSocket):
        client = websocket.client.host if websocket.client else "unknown"
        logger.debug(f"WebSocket connection attempt from {client}")
        await websocket.accept()
        await handle_connection(websocket, registry, relay, monitor)

    # The bundled client connects to the server root
    app.add_api_websocket_route("/ws", signaling_endpoint)
    app.add_api_websocket_route("/", signaling_endpoint)

    if static_dir and os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving static files from {static_dir}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
