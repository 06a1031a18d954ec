"""
backend/livematch/config.py

Purpose:
    Central settings loading for the live match service. Only service-level
    knobs live here; feed timing constants are fixed in config_feed.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"

    # Start the session (bootstrap + feed) from the app lifespan
    AUTOSTART_FEED: bool = True

    # Bootstrap sample data
    SAMPLE_MATCH_COUNT: int = 100
    SAMPLE_FETCH_DELAY_SCALE: float = 1.0  # 0 disables the simulated network delay
    SAMPLE_FETCH_FAILURE_RATE: float = 0.0  # share of fetches that raise FetchError

    # Store notification streams
    STREAM_QUEUE_MAXSIZE: int = 1000

    # WebSocket realtime stream
    WS_HEARTBEAT_SECONDS: int = 30
    WS_MAX_CONNECTIONS: int = 500

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
