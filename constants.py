import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:5500",
    "https://cipherchat-frontend.vercel.app",
]
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", ",".join(DEFAULT_ALLOWED_ORIGINS)).split(",")
    if origin.strip()
]

MAX_MESSAGES_PER_CHAT = 100

DELETE_GRACE_SECONDS = float(os.getenv("DELETE_GRACE_SECONDS", 1))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", 30 * 60))
IDLE_THRESHOLD_SECONDS = float(os.getenv("IDLE_THRESHOLD_SECONDS", 2 * 60 * 60))
