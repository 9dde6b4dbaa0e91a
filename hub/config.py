"""
Hub configuration and settings management.
"""
import os

from poster.fields import CREATE_VEHICLE_URL
from poster.verify import SELLING_URL


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Application configuration."""

    # Backend collaborator
    BACKEND_URL: str = os.getenv("FBMKT_BACKEND_URL", "http://localhost:5000/api").rstrip("/")
    SOCKET_URL: str = os.getenv("FBMKT_SOCKET_URL", "http://localhost:5000")
    BACKEND_TIMEOUT: float = float(os.getenv("FBMKT_BACKEND_TIMEOUT", "30"))
    REALTIME_ENABLED: bool = _env_bool("FBMKT_REALTIME", "1")
    REALTIME_RECONNECT_DELAY: float = 5.0

    # Shared key/value store (session, pending post)
    STORE_PATH: str = os.getenv("FBMKT_STORE", "./data/fbmkt_store.db")

    # Browser
    STORAGE_STATE: str = os.getenv("FBMKT_STORAGE_STATE", "storage_state.json")
    HEADLESS: bool = _env_bool("HEADLESS")
    LAUNCH_BROWSER: bool = _env_bool("FBMKT_LAUNCH_BROWSER", "1")
    CREATE_URL: str = CREATE_VEHICLE_URL
    SELLING_URL: str = SELLING_URL
    # Used only for records without a dealer address
    LOCATION: str = os.getenv("FBMKT_LOCATION", "")

    # Timing
    SESSION_CHECK_MINUTES: int = int(os.getenv("FBMKT_SESSION_CHECK_MINUTES", "30"))
    IDEMPOTENCY_WINDOW: float = 10.0
    DEDUP_PRUNE_SIZE: int = 100
    DEDUP_MAX_AGE: float = 60.0
    TAB_LOAD_ATTEMPTS: int = 10
    TAB_LOAD_INTERVAL: float = 1.0
    PROGRESS_LOG_SIZE: int = 200

    # API settings
    API_TITLE: str = "FB Marketplace Posting Hub"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Control surface for the marketplace posting engine"
    HOST: str = os.getenv("FBMKT_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("FBMKT_PORT", "8000"))

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.BACKEND_URL.startswith(("http://", "https://")):
            raise ValueError(f"FBMKT_BACKEND_URL must be an http(s) URL: {cls.BACKEND_URL}")
        if cls.SESSION_CHECK_MINUTES <= 0:
            raise ValueError("FBMKT_SESSION_CHECK_MINUTES must be positive")


# Global config instance
config = Config()
