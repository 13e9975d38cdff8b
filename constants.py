import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

HEARTBEAT_INTERVAL_SECONDS = float(os.getenv("HEARTBEAT_INTERVAL_SECONDS", 30))
# Control-frame ping/pong run by uvicorn; a missed pong closes the socket
WS_PING_INTERVAL_SECONDS = float(os.getenv("WS_PING_INTERVAL_SECONDS", HEARTBEAT_INTERVAL_SECONDS))
WS_PING_TIMEOUT_SECONDS = float(os.getenv("WS_PING_TIMEOUT_SECONDS", HEARTBEAT_INTERVAL_SECONDS))
SEND_QUEUE_MAXSIZE = int(os.getenv("SEND_QUEUE_MAXSIZE", 256))

STATIC_DIR = os.getenv("STATIC_DIR", "public")
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

# Fixed by the protocol, not configurable
ROOM_CAPACITY = 2

ERROR_INVALID_FORMAT = "Invalid message format"
ERROR_JOIN_FIELDS = "Room name and ID are required"
ERROR_ROOM_FULL = f"Room is full. Maximum {ROOM_CAPACITY} participants allowed."
