# backend-services/stock-service/config.py
import os
import math
import logging
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001
DEFAULT_MONGO_URI = "mongodb://127.0.0.1:27017/"
DEFAULT_DB_NAME = "stock_tracker"
RATE_UPDATE_FREQ_IN_SECONDS = 5


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}={raw!r}; using default {default}.")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} is below the minimum of {minimum}; using default {default}.")
        return default
    return value


def _float_env(name: str, default: float, allow_zero: bool = False) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}={raw!r}; using default {default}.")
        return default
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        logger.warning(f"{name}={value} is out of range; using default {default}.")
        return default
    return value


def _list_env(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    items = [part.strip() for part in raw.split(",") if part.strip()]
    return items or list(default)


@dataclass
class Settings:
    port: int = DEFAULT_PORT
    mongo_uri: str = DEFAULT_MONGO_URI
    db_name: str = DEFAULT_DB_NAME
    server_selection_timeout_ms: int = 5000
    connect_retries: int = 3
    retry_delay_sec: float = 5
    refresh_interval_sec: float = RATE_UPDATE_FREQ_IN_SECONDS
    refresh_max_workers: int = 10
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_dir: str = ""


def load_settings() -> Settings:
    """Reads the service configuration from the environment."""
    return Settings(
        port=_int_env("PORT", DEFAULT_PORT, minimum=1),
        mongo_uri=os.getenv("MONGO_URI", DEFAULT_MONGO_URI),
        db_name=os.getenv("MONGO_DB_NAME", DEFAULT_DB_NAME),
        server_selection_timeout_ms=_int_env("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000, minimum=1),
        connect_retries=_int_env("MONGO_CONNECT_RETRIES", 3, minimum=1),
        retry_delay_sec=_float_env("MONGO_RETRY_DELAY_SEC", 5, allow_zero=True),
        refresh_interval_sec=_float_env("RATE_UPDATE_FREQ_IN_SECONDS", RATE_UPDATE_FREQ_IN_SECONDS),
        refresh_max_workers=_int_env("REFRESH_MAX_WORKERS", 10, minimum=1),
        cors_origins=_list_env("CORS_ORIGINS", ["*"]),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("LOG_DIR", ""),
    )
