"""리뷰 관련 Pydantic 요청/응답 스키마 정의.

Review-related Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

ReviewText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
ReviewRating = Annotated[int, Field(ge=1, le=5)]


class ReviewCreate(BaseModel):
    """리뷰 생성 요청 스키마.

    tour_id, user_id가 없으면 중첩 라우트의 투어와 로그인 사용자로 채웁니다.
    (Missing tour_id/user_id default to the nested route tour and the caller.)
    """

    review: ReviewText
    rating: ReviewRating
    tour_id: UUID | None = None
    user_id: UUID | None = None


class ReviewUpdate(BaseModel):
    review: ReviewText | None = None
    rating: ReviewRating | None = None


class ReviewAuthor(BaseModel):
    """리뷰 작성자 — 이름과 사진만 노출 (name and photo only)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    photo: str


class ReviewResponse(BaseModel):
    """리뷰 응답 스키마."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    review: str
    rating: int
    created_at: datetime
    tour_id: UUID
    user: ReviewAuthor | None = None


REVIEW_FILTER_FIELDS: tuple[str, ...] = ("rating", "tour_id", "user_id", "created_at")
REVIEW_OUTPUT_FIELDS: tuple[str, ...] = tuple(ReviewResponse.model_fields)
