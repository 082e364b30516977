import os
import socket

import uvicorn

from constants import HOST, LOG_FILE, LOG_LEVEL, PORT
from logging_config import get_logger, setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from app import app  # noqa: E402,F401

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info(f"Starting CipherChat relay server on {HOST}:{PORT}")
    logger.info(f"Process PID: {os.getpid()}")
    logger.info(f"Hostname: {socket.gethostname()}")
    uvicorn.run("app:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
