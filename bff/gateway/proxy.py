"""
Same-origin gateway in front of the review backend.

Every `/api/<path>` call from the browser is forwarded to `{BACKEND_URL}/api/<path>`.
The session token travels as an HttpOnly cookie between browser and gateway, and as a
bearer token between gateway and backend. `login`/`signup` mint the cookie from the
backend's `token` field (which is stripped from the body); `logout` clears it.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from bff.config import SESSION_COOKIE_NAME, GatewayConfig, load_gateway_config
from bff.gateway.credentials import (
    bearer_headers,
    clear_session_cookie_kwargs,
    session_cookie_kwargs,
    split_token,
)

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
_BODYLESS_METHODS = ("GET", "HEAD")
_TOKEN_ISSUING_PATHS = ("login", "signup")
_LOGOUT_PATH = "logout"


@dataclass(frozen=True)
class DecodedBody:
    """
    JSON body of a backend response.

    `data` falls back to `{}` when the body is empty or not JSON; `malformed` is True only
    for a non-empty body that failed to parse, so callers can tell the two apart.
    """

    data: Any
    malformed: bool = False


def decode_json_body(resp: requests.Response) -> DecodedBody:
    if not resp.content:
        return DecodedBody(data={})
    try:
        return DecodedBody(data=resp.json())
    except ValueError:
        return DecodedBody(data={}, malformed=True)


def backend_url_for(cfg: GatewayConfig, path: str, query: str) -> str:
    url = f"{cfg.backend_url}/api/{path}"
    if query:
        url = f"{url}?{query}"
    return url


def _forward(
    method: str, url: str, *, headers: dict, body: Optional[bytes], timeout: float
) -> requests.Response:
    return requests.request(method, url, headers=headers, data=body, timeout=timeout, allow_redirects=False)


def _json_response(content: Any, status_code: int, *, method: str = "GET") -> Response:
    # HEAD, 204/304 and 1xx must not carry a body.
    if method == "HEAD" or status_code < 200 or status_code in (204, 304):
        return Response(status_code=status_code)
    return JSONResponse(content=content, status_code=status_code)


app = FastAPI(title="Anime review gateway")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise


@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True}


@app.api_route("/api/{path:path}", methods=PROXY_METHODS)
async def proxy_to_backend(request: Request, path: str) -> Response:
    cfg = load_gateway_config()
    url = backend_url_for(cfg, path, request.url.query)

    token = request.cookies.get(SESSION_COOKIE_NAME)
    headers = bearer_headers(token)

    body: Optional[bytes] = None
    if request.method not in _BODYLESS_METHODS:
        body = await request.body()

    try:
        backend_resp = await asyncio.to_thread(
            _forward,
            request.method,
            url,
            headers=headers,
            body=body,
            timeout=cfg.request_timeout_seconds,
        )
    except requests.Timeout:
        logger.exception("Backend timed out: %s /api/%s", request.method, path)
        return JSONResponse(status_code=504, content={"error": "Backend request timed out"})
    except requests.RequestException:
        logger.exception("Backend unreachable: %s /api/%s", request.method, path)
        return JSONResponse(status_code=502, content={"error": "Backend unavailable"})

    status = backend_resp.status_code
    decoded = decode_json_body(backend_resp)
    if decoded.malformed:
        logger.warning("Non-JSON backend response for %s /api/%s (status=%d)", request.method, path, status)
    data = decoded.data
    route = path.strip("/")

    if route in _TOKEN_ISSUING_PATHS and backend_resp.ok:
        issued, rest = split_token(data)
        if issued is not None:
            resp = _json_response(rest, status, method=request.method)
            resp.headers["Cache-Control"] = "no-store"
            resp.set_cookie(**session_cookie_kwargs(cfg, issued))
            logger.info("Session cookie issued via /api/%s", path)
            return resp

    if route == _LOGOUT_PATH and backend_resp.ok:
        resp = _json_response(data, status, method=request.method)
        resp.headers["Cache-Control"] = "no-store"
        resp.set_cookie(**clear_session_cookie_kwargs(cfg))
        logger.info("Session cookie cleared via /api/logout")
        return resp

    return _json_response(data, status, method=request.method)


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    cfg = load_gateway_config()
    logger.info(
        "Starting gateway on %s:%d (backend=%s env=%s cookie_secure=%s)",
        host,
        port,
        cfg.backend_url,
        cfg.environment,
        cfg.cookie_secure,
    )
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
