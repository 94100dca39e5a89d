from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

SESSION_COOKIE_NAME = "auth_token"
SESSION_TTL_SECONDS = 60 * 60 * 24  # 24h

DEFAULT_BACKEND_URL = "http://localhost:8080"


@dataclass(frozen=True)
class GatewayConfig:
    # Server-side only: where the gateway forwards /api/* calls.
    backend_url: str
    # Client-side base URL (the gateway origin, or the backend for direct calls).
    api_base_url: str

    environment: str
    cookie_secure: bool
    request_timeout_seconds: float

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name, "") or "").strip() or default


def _parse_bool(value: str) -> bool | None:
    v = (value or "").strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return None


@lru_cache(maxsize=1)
def load_gateway_config() -> GatewayConfig:
    """
    Load gateway/client configuration from environment variables.

    Secure cookies follow APP_ENV=production unless AUTH_COOKIE_SECURE says otherwise.
    """
    environment = _env_str("APP_ENV", "development").lower()

    cookie_secure = _parse_bool(os.getenv("AUTH_COOKIE_SECURE", ""))
    if cookie_secure is None:
        cookie_secure = environment == "production"

    try:
        timeout = float(_env_str("GATEWAY_TIMEOUT_SECONDS", "30"))
    except ValueError:
        timeout = 30.0
    if timeout < 1:
        timeout = 1.0

    return GatewayConfig(
        backend_url=_env_str("BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        api_base_url=_env_str("API_BASE_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        environment=environment,
        cookie_secure=cookie_secure,
        request_timeout_seconds=timeout,
    )
