from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Non-2xx response from the API, normalized to (message, status)."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @classmethod
    def from_response(cls, resp: Any) -> "ApiError":
        """
        Build an error from an HTTP response.

        The message is the body's `error` field; anything else (missing field, non-JSON
        body) falls back to "HTTP Error: <status>".
        """
        status = int(resp.status_code)
        try:
            body = resp.json()
        except ValueError:
            body = None
        message = body.get("error") if isinstance(body, dict) else None
        if not isinstance(message, str) or not message.strip():
            message = f"HTTP Error: {status}"
        return cls(message, status)
