"""
Credential representation at the browser/backend trust boundary.

Browser leg: HttpOnly `auth_token` cookie. Backend leg: `Authorization: Bearer <token>`.
Everything here is pure so it can be tested without any transport.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from bff.config import SESSION_COOKIE_NAME, SESSION_TTL_SECONDS, GatewayConfig


def bearer_headers(token: Optional[str]) -> Dict[str, str]:
    """Outbound headers for a backend call, given the cookie token (if any)."""
    headers = {"Content-Type": "application/json"}
    if isinstance(token, str) and token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def session_cookie_kwargs(cfg: GatewayConfig, token: str) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "value": token,
        "max_age": SESSION_TTL_SECONDS,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(cfg: GatewayConfig) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "value": "",
        "max_age": 0,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def split_token(body: Any) -> Tuple[Optional[str], Any]:
    """
    Separate the session token from a login/signup response body.

    Returns (token, body_without_token). Bodies without a string `token` are returned
    as-is with token None. The input is never mutated.
    """
    if not isinstance(body, dict):
        return None, body
    token = body.get("token")
    if not isinstance(token, str):
        return None, body
    rest = {k: v for k, v in body.items() if k != "token"}
    return token, rest
