import uvicorn
from constants import HOST, PORT, RELOAD, LOG_LEVEL, LOG_FILE, WS_PING_INTERVAL_SECONDS, WS_PING_TIMEOUT_SECONDS
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from logging_config import get_logger

logger = get_logger(__name__)


def main():
    logger.info("=" * 50)
    logger.info(f"Rendezvous relay starting on {HOST}:{PORT}")
    logger.info(f"WebSocket endpoint: ws://{HOST}:{PORT}/ws")
    logger.info("=" * 50)
    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=RELOAD,
        log_config=None,
        ws_ping_interval=WS_PING_INTERVAL_SECONDS,
        ws_ping_timeout=WS_PING_TIMEOUT_SECONDS,
    )


if __name__ == "__main__":
    main()
