from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import requests
from fastapi.testclient import TestClient

import bff.gateway.proxy as proxy


class _FakeBackend:
    """Stands in for `proxy._forward`; records what the gateway sent."""

    def __init__(self, resp: Optional[requests.Response] = None, exc: Optional[Exception] = None) -> None:
        self._resp = resp
        self._exc = exc
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method, url, *, headers, body, timeout):  # type: ignore[no-untyped-def]
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "body": body, "timeout": timeout})
        if self._exc is not None:
            raise self._exc
        return self._resp

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def backend(monkeypatch):  # type: ignore[no-untyped-def]
    def _install(resp=None, exc=None):  # type: ignore[no-untyped-def]
        fake = _FakeBackend(resp=resp, exc=exc)
        monkeypatch.setattr(proxy, "_forward", fake)
        return fake

    return _install


def _client() -> TestClient:
    return TestClient(proxy.app)


def test_healthz() -> None:
    r = _client().get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_login_strips_token_and_sets_cookie(backend, make_response) -> None:
    fake = backend(
        make_response(200, {"message": "Login successful", "user": {"id": 1, "username": "a"}, "token": "tok-123"})
    )
    r = _client().post("/api/login", content=b'{"email":"a@example.com","password":"pw"}')

    assert r.status_code == 200
    body = r.json()
    assert "token" not in body
    assert body == {"message": "Login successful", "user": {"id": 1, "username": "a"}}
    assert "tok-123" not in r.text

    cookie = r.headers["set-cookie"]
    assert cookie.startswith("auth_token=tok-123")
    assert "HttpOnly" in cookie
    assert "Max-Age=86400" in cookie
    assert "Path=/" in cookie
    assert "samesite=lax" in cookie.lower()
    assert "secure" not in cookie.lower()
    assert r.headers["cache-control"] == "no-store"

    assert fake.last["method"] == "POST"
    assert fake.last["url"] == "http://localhost:8080/api/login"
    assert fake.last["body"] == b'{"email":"a@example.com","password":"pw"}'


def test_signup_created_sets_cookie_in_production(monkeypatch, backend, make_response) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    backend(make_response(201, {"message": "User created", "user": {"id": 2}, "token": "new-tok"}))
    r = _client().post("/api/signup", content=b"{}")

    assert r.status_code == 201
    assert r.json() == {"message": "User created", "user": {"id": 2}}
    cookie = r.headers["set-cookie"]
    assert cookie.startswith("auth_token=new-tok")
    assert "secure" in cookie.lower()


def test_failed_login_forwards_error_without_cookie(backend, make_response) -> None:
    backend(make_response(401, {"error": "Invalid credentials"}))
    r = _client().post("/api/login", content=b"{}")
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}
    assert "set-cookie" not in r.headers


def test_login_without_string_token_is_passed_through(backend, make_response) -> None:
    backend(make_response(200, {"message": "ok", "token": 42}))
    r = _client().post("/api/login", content=b"{}")
    assert r.status_code == 200
    assert r.json() == {"message": "ok", "token": 42}
    assert "set-cookie" not in r.headers


def test_logout_clears_cookie_and_keeps_body(backend, make_response) -> None:
    backend(make_response(200, {"message": "Logout successful", "token": "ignored"}))
    r = _client().post("/api/logout", headers={"Cookie": "auth_token=tok-123"})
    assert r.status_code == 200
    assert r.json() == {"message": "Logout successful", "token": "ignored"}
    cookie = r.headers["set-cookie"]
    assert cookie.startswith("auth_token=")
    assert "tok-123" not in cookie
    assert "Max-Age=0" in cookie
    assert "HttpOnly" in cookie


def test_logout_with_empty_body_still_clears_cookie(backend, make_response) -> None:
    backend(make_response(204))
    r = _client().post("/api/logout")
    assert r.status_code == 204
    assert "Max-Age=0" in r.headers["set-cookie"]


def test_failed_logout_does_not_touch_cookie(backend, make_response) -> None:
    backend(make_response(500, {"error": "boom"}))
    r = _client().post("/api/logout")
    assert r.status_code == 500
    assert "set-cookie" not in r.headers


def test_cookie_is_relayed_as_bearer_header(backend, make_response) -> None:
    fake = backend(make_response(200, {"user": {"id": 1}}))
    r = _client().get("/api/me", headers={"Cookie": "auth_token=tok-123"})
    assert r.status_code == 200
    assert fake.last["headers"] == {"Content-Type": "application/json", "Authorization": "Bearer tok-123"}
    assert fake.last["body"] is None


def test_browser_authorization_header_is_not_forwarded(backend, make_response) -> None:
    fake = backend(make_response(401, {"error": "unauthorized"}))
    r = _client().get("/api/me", headers={"Authorization": "Bearer forged"})
    assert r.status_code == 401
    assert "Authorization" not in fake.last["headers"]


def test_path_and_query_string_are_preserved(backend, make_response) -> None:
    payload = {"data": [], "pagination": {"page": 2, "pageSize": 12, "total": 30, "totalPage": 3}}
    fake = backend(make_response(200, payload))
    r = _client().get("/api/animes?page=2&pageSize=12")
    assert r.status_code == 200
    assert r.json() == payload
    assert fake.last["url"] == "http://localhost:8080/api/animes?page=2&pageSize=12"


def test_nested_path_and_backend_url_from_env(monkeypatch, backend, make_response) -> None:
    monkeypatch.setenv("BACKEND_URL", "http://backend:9000/")
    fake = backend(make_response(200, {"data": []}))
    _client().get("/api/animes/search?q=%E3%83%95&limit=15")
    assert fake.last["url"] == "http://backend:9000/api/animes/search?q=%E3%83%95&limit=15"


def test_other_paths_forward_status_and_body_unchanged(backend, make_response) -> None:
    review = {"message": "Review created", "review": {"id": 9, "score": 85, "comment": "great", "token": "not-a-session"}}
    fake = backend(make_response(201, review))
    r = _client().post("/api/reviews", content=b'{"annictId":1,"score":85,"comment":"great"}')
    assert r.status_code == 201
    assert r.json() == review
    assert "set-cookie" not in r.headers
    assert fake.last["body"] == b'{"annictId":1,"score":85,"comment":"great"}'


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
def test_other_methods_forward_body(backend, make_response, method: str) -> None:
    fake = backend(make_response(200, {"ok": True}))
    r = _client().request(method, "/api/reviews/1", content=b'{"score":1}')
    assert r.status_code == 200
    assert fake.last["method"] == method
    assert fake.last["body"] == b'{"score":1}'


def test_head_is_forwarded_without_body(backend, make_response) -> None:
    fake = backend(make_response(200, {"data": []}))
    r = _client().head("/api/animes")
    assert r.status_code == 200
    assert fake.last["method"] == "HEAD"
    assert fake.last["body"] is None


def test_non_json_backend_body_becomes_empty_object(backend, make_response) -> None:
    backend(make_response(502, raw=b"<html>Bad Gateway</html>"))
    r = _client().get("/api/animes")
    assert r.status_code == 502
    assert r.json() == {}


def test_non_json_login_body_does_not_set_cookie(backend, make_response) -> None:
    backend(make_response(200, raw=b"token=abc"))
    r = _client().post("/api/login", content=b"{}")
    assert r.status_code == 200
    assert r.json() == {}
    assert "set-cookie" not in r.headers


def test_backend_unreachable_is_502(backend) -> None:
    backend(exc=requests.ConnectionError("connection refused"))
    r = _client().get("/api/animes")
    assert r.status_code == 502
    assert r.json() == {"error": "Backend unavailable"}


def test_backend_timeout_is_504(backend) -> None:
    backend(exc=requests.ReadTimeout("slow"))
    r = _client().get("/api/animes")
    assert r.status_code == 504
    assert r.json() == {"error": "Backend request timed out"}


def test_decode_json_body_distinguishes_empty_and_malformed(make_response) -> None:
    assert proxy.decode_json_body(make_response(200)) == proxy.DecodedBody(data={}, malformed=False)
    assert proxy.decode_json_body(make_response(200, raw=b"nope")) == proxy.DecodedBody(data={}, malformed=True)
    assert proxy.decode_json_body(make_response(200, [1, 2])).data == [1, 2]


def test_trailing_slash_login_still_strips_token(backend, make_response) -> None:
    fake = backend(make_response(200, {"message": "Login successful", "token": "tok-123"}))
    r = _client().post("/api/login/", content=b"{}")
    assert r.status_code == 200
    assert r.json() == {"message": "Login successful"}
    assert "tok-123" not in r.text
    assert r.headers["set-cookie"].startswith("auth_token=tok-123")
    assert fake.last["url"] == "http://localhost:8080/api/login/"


def test_trailing_slash_logout_clears_cookie(backend, make_response) -> None:
    backend(make_response(200, {"message": "Logged out"}))
    r = _client().post("/api/logout/", headers={"Cookie": "auth_token=tok-123"})
    assert r.status_code == 200
    assert "Max-Age=0" in r.headers["set-cookie"]
