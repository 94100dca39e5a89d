"""
Page-level data loading on top of `ApiClient`.

Each loader returns a view object and never raises for API, transport or validation
failures: those are mapped to a user-facing message in `view.error`. There are no
retries; the user reloads or resubmits.

Loaders take an optional `FetchGeneration`. When a newer load has started before an
older one finishes, the older result is marked `stale` and should be discarded.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests
from pydantic import ValidationError

from bff.client.api import ApiClient
from bff.client.errors import ApiError
from bff.client.models import Anime, AnimeStats, AnimeWithStats, AnnictWork, Review, ReviewWithAnime, User
from bff.client.validation import normalize_keyword
from bff.session import AppSession

logger = logging.getLogger(__name__)

ANIME_PAGE_SIZE = 12

MESSAGES: Dict[str, str] = {
    "anime_list_failed": "Failed to load anime.",
    "search_failed": "Search failed.",
    "anime_not_found": "Anime not found.",
    "detail_failed": "Failed to load data.",
    "reviews_failed": "Failed to load reviews.",
    "review_submit_failed": "Failed to post the review.",
    "login_failed": "Login failed.",
    "signup_failed": "Sign-up failed.",
}

_PAGE_ERRORS = (ApiError, requests.RequestException, ValidationError)


class FetchGeneration:
    """Monotonic request-generation counter for one page's data."""

    def __init__(self) -> None:
        self._current = 0
        self._lock = threading.Lock()

    def begin(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._current


@dataclass
class _View:
    error: Optional[str] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def _begin(generation: Optional[FetchGeneration]) -> Optional[int]:
    return generation.begin() if generation is not None else None


def _finish(view: _View, generation: Optional[FetchGeneration], token: Optional[int]) -> None:
    if generation is not None and token is not None and not generation.is_current(token):
        view.stale = True


def validation_message(err: ValidationError) -> str:
    errors = err.errors()
    if not errors:
        return str(err)
    msg = str(errors[0].get("msg") or "")
    return msg.removeprefix("Value error, ")


def validation_field_errors(err: ValidationError) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for e in err.errors():
        loc = e.get("loc") or ()
        name = str(loc[0]) if loc else "__root__"
        out.setdefault(name, str(e.get("msg") or "").removeprefix("Value error, "))
    return out


# ---- Anime list ----


@dataclass
class AnimeListView(_View):
    page: int = 1
    total_page: int = 1
    animes: List[AnimeWithStats] = field(default_factory=list)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_page


def load_anime_page(
    client: ApiClient,
    page: int = 1,
    page_size: int = ANIME_PAGE_SIZE,
    *,
    generation: Optional[FetchGeneration] = None,
) -> AnimeListView:
    token = _begin(generation)
    view = AnimeListView(page=page)
    try:
        resp = client.get_anime_list(page, page_size)
        view.animes = resp.data
        view.total_page = resp.pagination.total_page
    except _PAGE_ERRORS as e:
        logger.warning("Anime list load failed (page=%s): %s", page, e)
        view.error = MESSAGES["anime_list_failed"]
    _finish(view, generation, token)
    return view


# ---- Search ----


@dataclass
class SearchView(_View):
    keyword: str = ""
    results: List[AnnictWork] = field(default_factory=list)
    next_cursor: Optional[str] = None
    searched: bool = False


def run_search(
    client: ApiClient,
    keyword: str,
    *,
    cursor: Optional[str] = None,
    generation: Optional[FetchGeneration] = None,
) -> SearchView:
    token = _begin(generation)
    q = normalize_keyword(keyword)
    view = SearchView(keyword=keyword or "")
    if q is None:
        # Clearing the box still supersedes any search in flight.
        return view
    view.searched = True
    try:
        resp = client.search_animes(q, cursor=cursor)
        view.results = resp.data
        view.next_cursor = resp.next_cursor
    except _PAGE_ERRORS as e:
        logger.warning("Search failed (q=%r): %s", q, e)
        view.error = MESSAGES["search_failed"]
    _finish(view, generation, token)
    return view


# ---- Anime detail ----


@dataclass
class AnimeDetailView(_View):
    annict_id: int = 0
    anime: Optional[Anime] = None
    stats: Optional[AnimeStats] = None
    reviews: List[Review] = field(default_factory=list)


def load_anime_detail(
    client: ApiClient, annict_id: int, *, generation: Optional[FetchGeneration] = None
) -> AnimeDetailView:
    """
    Detail first, then reviews (only when the anime exists locally).

    Calls are sequential so reviews are never shown for an anime that failed to load.
    """
    token = _begin(generation)
    view = AnimeDetailView(annict_id=annict_id)
    try:
        detail = client.get_anime_detail(annict_id)
        view.anime = detail.anime
        view.stats = detail.stats
        if detail.anime.id:
            view.reviews = client.get_reviews_by_anime(detail.anime.id).data
    except ApiError as e:
        logger.warning("Anime detail load failed (annict_id=%s): %s", annict_id, e)
        view.error = MESSAGES["anime_not_found"] if e.is_not_found else MESSAGES["detail_failed"]
    except (requests.RequestException, ValidationError) as e:
        logger.warning("Anime detail load failed (annict_id=%s): %s", annict_id, e)
        view.error = MESSAGES["detail_failed"]
    _finish(view, generation, token)
    return view


@dataclass
class ReviewSubmission:
    ok: bool = False
    error: Optional[str] = None
    review: Optional[Review] = None
    detail: Optional[AnimeDetailView] = None


def submit_review(
    client: ApiClient,
    annict_id: int,
    score: int,
    comment: Optional[str] = None,
    *,
    generation: Optional[FetchGeneration] = None,
) -> ReviewSubmission:
    """Post a review, then reload the detail page data."""
    try:
        created = client.create_review(annict_id, score, comment)
    except ValidationError as e:
        return ReviewSubmission(error=validation_message(e))
    except ApiError as e:
        return ReviewSubmission(error=e.message)
    except requests.RequestException as e:
        logger.warning("Review submit failed (annict_id=%s): %s", annict_id, e)
        return ReviewSubmission(error=MESSAGES["review_submit_failed"])
    detail = load_anime_detail(client, annict_id, generation=generation)
    return ReviewSubmission(ok=True, review=created.review, detail=detail)


# ---- Reviews ----


@dataclass
class RecentReviewsView(_View):
    reviews: List[ReviewWithAnime] = field(default_factory=list)


def load_recent_reviews(client: ApiClient) -> RecentReviewsView:
    view = RecentReviewsView()
    try:
        view.reviews = client.get_recent_reviews().data
    except _PAGE_ERRORS as e:
        logger.warning("Recent reviews load failed: %s", e)
        view.error = MESSAGES["reviews_failed"]
    return view


@dataclass
class MyReviewsView(_View):
    user: Optional[User] = None
    reviews: List[ReviewWithAnime] = field(default_factory=list)
    login_required: bool = False


def load_my_reviews(client: ApiClient, session: AppSession) -> MyReviewsView:
    """My page. Without a logged-in user nothing is fetched."""
    if not session.is_authenticated:
        return MyReviewsView(login_required=not session.is_loading)
    view = MyReviewsView(user=session.user)
    try:
        view.reviews = client.get_my_reviews().data
    except _PAGE_ERRORS as e:
        logger.warning("My reviews load failed: %s", e)
        view.error = MESSAGES["reviews_failed"]
    return view


# ---- Auth forms ----


@dataclass
class FormResult:
    ok: bool = False
    error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)


def submit_login(session: AppSession, email: str, password: str) -> FormResult:
    try:
        session.login(email, password)
    except ValidationError as e:
        return FormResult(field_errors=validation_field_errors(e))
    except ApiError as e:
        return FormResult(error=e.message)
    except requests.RequestException as e:
        logger.warning("Login failed: %s", e)
        return FormResult(error=MESSAGES["login_failed"])
    return FormResult(ok=True)


def submit_signup(session: AppSession, username: str, email: str, password: str) -> FormResult:
    try:
        session.signup(username, email, password)
    except ValidationError as e:
        return FormResult(field_errors=validation_field_errors(e))
    except ApiError as e:
        return FormResult(error=e.message)
    except requests.RequestException as e:
        logger.warning("Sign-up failed: %s", e)
        return FormResult(error=MESSAGES["signup_failed"])
    return FormResult(ok=True)
