"""
Wire shapes of the review backend, as seen through the gateway.

List endpoints return `{data: [...], pagination?}` or `{data: [...], nextCursor?}`;
detail endpoints return a named object plus nullable stats; mutations return
`{message, <entity>}`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _list_or_empty(v: Any) -> list:
    return v if isinstance(v, list) else []


class User(_Wire):
    id: int
    username: str
    email: str
    created_at: Optional[datetime] = None


class AuthResponse(_Wire):
    """signup/login response after the gateway stripped the token."""

    message: str = ""
    user: User


class CurrentUserResponse(_Wire):
    user: User


# ---- Anime ----


class Anime(_Wire):
    id: int
    annict_id: int = Field(alias="annictId")
    title: str
    year: int = 0
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class AnimeStats(_Wire):
    anime_id: int = Field(alias="animeId")
    review_count: int = Field(default=0, alias="reviewCount")
    avg_score: float = Field(default=0.0, alias="avgScore")


class AnimeWithStats(Anime):
    review_count: int = Field(default=0, alias="reviewCount")
    avg_score: float = Field(default=0.0, alias="avgScore")


class Pagination(_Wire):
    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    total_page: int = Field(alias="totalPage")


class AnimeListResponse(_Wire):
    data: List[AnimeWithStats] = Field(default_factory=list)
    pagination: Pagination

    @field_validator("data", mode="before")
    @classmethod
    def _data_list(cls, v: Any) -> list:
        return _list_or_empty(v)


class AnnictImage(_Wire):
    recommended_image_url: str = Field(default="", alias="recommendedImageUrl")


class AnnictWork(_Wire):
    """Search hit from the external catalog (not yet cached locally)."""

    annict_id: int = Field(alias="annictId")
    title: str
    season_year: Optional[int] = Field(default=None, alias="seasonYear")
    image: Optional[AnnictImage] = None


class AnimeSearchResponse(_Wire):
    data: List[AnnictWork] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    @field_validator("data", mode="before")
    @classmethod
    def _data_list(cls, v: Any) -> list:
        return _list_or_empty(v)


class AnimeDetailResponse(_Wire):
    anime: Anime
    stats: Optional[AnimeStats] = None


# ---- Reviews ----


class Review(_Wire):
    id: int
    user_id: int = Field(alias="userId")
    anime_id: int = Field(alias="animeId")
    score: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class ReviewWithAnime(Review):
    anime_title: str = Field(default="", alias="animeTitle")
    anime_year: int = Field(default=0, alias="animeYear")
    anime_image_url: Optional[str] = Field(default=None, alias="animeImageUrl")


class ReviewListResponse(_Wire):
    data: List[Review] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _data_list(cls, v: Any) -> list:
        return _list_or_empty(v)


class MyReviewListResponse(_Wire):
    data: List[ReviewWithAnime] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _data_list(cls, v: Any) -> list:
        return _list_or_empty(v)


class ReviewCreateResponse(_Wire):
    message: str = ""
    review: Review
