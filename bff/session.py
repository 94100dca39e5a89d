"""
Application session: who (if anyone) is logged in, as the client sees it.

    UNKNOWN -> CHECKING -> AUTHENTICATED(user) | ANONYMOUS | ERROR

Construct one `AppSession` per client at the composition root and pass it to whatever
needs it. All state changes go through `_transition`.
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, FrozenSet, Optional

import requests
from pydantic import ValidationError

from bff.client.api import ApiClient
from bff.client.errors import ApiError
from bff.client.models import User

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    ERROR = "error"


_SETTLED = frozenset({SessionState.AUTHENTICATED, SessionState.ANONYMOUS, SessionState.ERROR})

_ALLOWED: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.UNKNOWN: frozenset({SessionState.CHECKING, SessionState.AUTHENTICATED, SessionState.ANONYMOUS}),
    SessionState.CHECKING: _SETTLED,
    SessionState.AUTHENTICATED: frozenset({SessionState.CHECKING, SessionState.AUTHENTICATED, SessionState.ANONYMOUS}),
    SessionState.ANONYMOUS: frozenset({SessionState.CHECKING, SessionState.AUTHENTICATED, SessionState.ANONYMOUS}),
    SessionState.ERROR: frozenset({SessionState.CHECKING, SessionState.AUTHENTICATED, SessionState.ANONYMOUS}),
}


class InvalidTransition(RuntimeError):
    pass


class AppSession:
    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._state = SessionState.UNKNOWN
        self._user: Optional[User] = None
        self._last_error: Optional[Exception] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def is_loading(self) -> bool:
        return self._state in (SessionState.UNKNOWN, SessionState.CHECKING)

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    def _transition(
        self, new_state: SessionState, *, user: Optional[User] = None, error: Optional[Exception] = None
    ) -> None:
        if new_state not in _ALLOWED[self._state]:
            raise InvalidTransition(f"{self._state.value} -> {new_state.value}")
        if new_state is SessionState.AUTHENTICATED and user is None:
            raise InvalidTransition("authenticated state requires a user")
        logger.debug("session: %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        self._user = user if new_state is SessionState.AUTHENTICATED else None
        self._last_error = error if new_state is SessionState.ERROR else None

    def refresh(self) -> SessionState:
        """
        Ask the backend who we are.

        401 means "not logged in" and is not an error. Anything else that fails, including
        a 2xx body that is not a user, leaves the session in ERROR with the cause in
        `last_error`.
        """
        self._transition(SessionState.CHECKING)
        try:
            user = self._client.get_current_user()
        except ApiError as e:
            if e.is_unauthorized:
                self._transition(SessionState.ANONYMOUS)
            else:
                logger.error("Session check failed: %s (status=%d)", e.message, e.status)
                self._transition(SessionState.ERROR, error=e)
            return self._state
        except (requests.RequestException, ValidationError) as e:
            logger.error("Session check failed: %s", str(e))
            self._transition(SessionState.ERROR, error=e)
            return self._state
        self._transition(SessionState.AUTHENTICATED, user=user)
        return self._state

    def login(self, email: str, password: str) -> User:
        resp = self._client.login(email, password)
        self._transition(SessionState.AUTHENTICATED, user=resp.user)
        return resp.user

    def signup(self, username: str, email: str, password: str) -> User:
        resp = self._client.signup(username, email, password)
        self._transition(SessionState.AUTHENTICATED, user=resp.user)
        return resp.user

    def logout(self) -> None:
        self._client.logout()
        self._transition(SessionState.ANONYMOUS)
