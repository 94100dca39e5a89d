"""
Client-side input validation.

Constructing any of these models raises `pydantic.ValidationError` for bad input, so
callers validate before a request is ever built.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PASSWORD_MIN_LENGTH = 8
SCORE_MIN = 0
SCORE_MAX = 100


class SignUpInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def _username_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Enter a username")
        return v

    @field_validator("password")
    @classmethod
    def _password_length(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        return v


class LoginInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def _password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Enter your password")
        return v


class ReviewInput(BaseModel):
    """Review keyed by the external catalog id (the backend caches the anime on first review)."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    annict_id: int = Field(alias="annictId", ge=1)
    score: int = Field(ge=SCORE_MIN, le=SCORE_MAX, strict=True)
    comment: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def _blank_comment_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PageQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, alias="pageSize")

    model_config = ConfigDict(populate_by_name=True)

    def to_params(self) -> Dict[str, int]:
        return {"page": self.page, "pageSize": self.page_size}


def normalize_keyword(keyword: Optional[str]) -> Optional[str]:
    """Trimmed search keyword, or None when there is nothing to search for."""
    k = (keyword or "").strip()
    return k or None
