"""
Typed client for the review API.

Calls go through the gateway (`{base_url}/api/...`). The underlying `requests.Session`
keeps the gateway's HttpOnly `auth_token` cookie and sends it back on every call; the
client itself never looks at the token.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from bff.client.errors import ApiError
from bff.client.models import (
    AnimeDetailResponse,
    AnimeListResponse,
    AnimeSearchResponse,
    AuthResponse,
    CurrentUserResponse,
    MyReviewListResponse,
    ReviewCreateResponse,
    ReviewListResponse,
    User,
)
from bff.client.validation import LoginInput, PageQuery, ReviewInput, SignUpInput, normalize_keyword
from bff.config import load_gateway_config

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 15


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        if base_url is None:
            base_url = load_gateway_config().api_base_url
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}/api/{path}"
        resp = self._session.request(
            method,
            url,
            params=params,
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        if not resp.ok:
            err = ApiError.from_response(resp)
            logger.debug("%s /api/%s -> %d: %s", method, path, err.status, err.message)
            raise err
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            logger.warning("Non-JSON success body from %s /api/%s (status=%d)", method, path, resp.status_code)
            return {}

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", path, body=body)

    # ---- Auth ----

    def signup(self, username: str, email: str, password: str) -> AuthResponse:
        payload = SignUpInput(username=username, email=email, password=password)
        return AuthResponse.model_validate(self._post("signup", payload.model_dump()))

    def login(self, email: str, password: str) -> AuthResponse:
        payload = LoginInput(email=email, password=password)
        return AuthResponse.model_validate(self._post("login", payload.model_dump()))

    def logout(self) -> None:
        self._post("logout")

    def get_current_user(self) -> User:
        """Requires a valid session cookie; raises ApiError(401) otherwise."""
        return CurrentUserResponse.model_validate(self._get("me")).user

    # ---- Anime ----

    def get_anime_list(self, page: int = 1, page_size: int = 10) -> AnimeListResponse:
        query = PageQuery(page=page, page_size=page_size)
        return AnimeListResponse.model_validate(self._get("animes", query.to_params()))

    def search_animes(
        self, keyword: str, limit: int = DEFAULT_SEARCH_LIMIT, cursor: Optional[str] = None
    ) -> AnimeSearchResponse:
        q = normalize_keyword(keyword)
        if q is None:
            raise ValueError("search keyword must not be empty")
        params: Dict[str, Any] = {"q": q, "limit": limit}
        if cursor:
            params["cursor"] = cursor
        return AnimeSearchResponse.model_validate(self._get("animes/search", params))

    def get_anime_detail(self, annict_id: int) -> AnimeDetailResponse:
        """Detail by external catalog id."""
        return AnimeDetailResponse.model_validate(self._get(f"animes/{int(annict_id)}"))

    # ---- Reviews ----

    def get_reviews_by_anime(self, anime_id: int) -> ReviewListResponse:
        """Reviews by internal anime id (`Anime.id`, not `annictId`)."""
        return ReviewListResponse.model_validate(self._get("reviews", {"anime_id": int(anime_id)}))

    def create_review(self, annict_id: int, score: int, comment: Optional[str] = None) -> ReviewCreateResponse:
        payload = ReviewInput(annict_id=annict_id, score=score, comment=comment)
        return ReviewCreateResponse.model_validate(self._post("reviews", payload.to_payload()))

    def get_my_reviews(self) -> MyReviewListResponse:
        return MyReviewListResponse.model_validate(self._get("me/reviews"))

    def get_recent_reviews(self) -> MyReviewListResponse:
        return MyReviewListResponse.model_validate(self._get("reviews/recent"))
