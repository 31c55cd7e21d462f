from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


_ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = os.getenv("APP_NAME", "dmat-account-service")
    version: str = os.getenv("APP_VERSION", "0.1.0")
    environment: str = _ENVIRONMENT
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "8000"))
    docs_enabled: bool = _env_bool("DOCS_ENABLED", _ENVIRONMENT == "development")
    https_redirect: bool = _env_bool("HTTPS_REDIRECT", False)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format: str = os.getenv("LOG_FORMAT", "text").lower()
    log_file: str = os.getenv("LOG_FILE", "")
    log_max_bytes: int = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
    log_backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
