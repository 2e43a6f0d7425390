# backend/tablebook/schemas/review.py
from datetime import datetime
from typing import Optional

from pydantic import Field
from pydantic.functional_validators import field_validator

from ..core.constants import MAX_REVIEW_COMMENT_LENGTH, MAX_REVIEW_RATING, MIN_REVIEW_RATING
from ._strict_base import StrictModel, StrictRequestModel


def _clean(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v2 = v.strip()
    return v2 or None


class ReviewCreate(StrictRequestModel):
    reservation_id: int = Field(..., gt=0)
    rating: int = Field(..., ge=MIN_REVIEW_RATING, le=MAX_REVIEW_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_REVIEW_COMMENT_LENGTH)

    @field_validator("comment")
    @classmethod
    def _clean_comment(cls, v: Optional[str]) -> Optional[str]:
        return _clean(v)


class ReviewUpdate(StrictRequestModel):
    rating: Optional[int] = Field(None, ge=MIN_REVIEW_RATING, le=MAX_REVIEW_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_REVIEW_COMMENT_LENGTH)

    @field_validator("comment")
    @classmethod
    def _clean_comment(cls, v: Optional[str]) -> Optional[str]:
        return _clean(v)


class ReviewResponse(StrictModel):
    id: int
    reservation_id: int
    diner_id: str
    rating: int
    comment: Optional[str]
    created_at: datetime
