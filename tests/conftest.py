"""
Pytest config.

Pins the repo root on sys.path so `import bff` works with a global `pytest` entrypoint,
and isolates every test from the caller's gateway environment variables.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

_GATEWAY_ENV = ("BACKEND_URL", "API_BASE_URL", "APP_ENV", "AUTH_COOKIE_SECURE", "GATEWAY_TIMEOUT_SECONDS")


@pytest.fixture(autouse=True)
def _clean_gateway_env(monkeypatch: pytest.MonkeyPatch):
    from bff.config import load_gateway_config

    for name in _GATEWAY_ENV:
        monkeypatch.delenv(name, raising=False)
    load_gateway_config.cache_clear()
    yield
    load_gateway_config.cache_clear()


@pytest.fixture
def make_response() -> Callable[..., Any]:
    """Build a real `requests.Response` with a JSON (or raw) body."""
    import requests

    def _make(status: int, body: Any = None, *, raw: Optional[bytes] = None, url: str = "") -> requests.Response:
        resp = requests.Response()
        resp.status_code = status
        resp.url = url
        resp.encoding = "utf-8"
        if raw is not None:
            resp._content = raw
        elif body is None:
            resp._content = b""
        else:
            resp._content = json.dumps(body).encode("utf-8")
            resp.headers["Content-Type"] = "application/json"
        return resp

    return _make
