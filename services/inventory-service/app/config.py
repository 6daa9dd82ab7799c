from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = "inventory-service"
    version: str = "0.1.0"
    environment: str = os.getenv("APP_ENV", "development").lower()
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "3001"))
    accounts_file: str = os.getenv("ACCOUNTS_FILE", "accounts.json")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "admin123")
    admin_api_key: str = os.getenv("ADMIN_API_KEY", "")
    session_secret: str = os.getenv("SESSION_SECRET", "dev-secret-change-me")
    session_issuer: str = os.getenv("SESSION_ISSUER", "inventory.admin")
    session_ttl_seconds: int = int(os.getenv("SESSION_TTL_SECONDS", str(24 * 60 * 60)))
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "admin_session")
    upstream_base_url: str = os.getenv("UPSTREAM_BASE_URL", "http://localhost:3001")
    upstream_path_prefix: str = os.getenv("UPSTREAM_PATH_PREFIX", "/api")
    upstream_api_key: str = os.getenv("UPSTREAM_API_KEY", "")
    upstream_timeout_seconds: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))
    login_max_failures: int = int(os.getenv("LOGIN_MAX_FAILURES", "5"))
    login_window_seconds: int = int(os.getenv("LOGIN_WINDOW_SECONDS", "300"))
    login_throttle_backend: str = os.getenv("LOGIN_THROTTLE_BACKEND", "memory").lower()
    redis_url: str = os.getenv("REDIS_URL", "")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
