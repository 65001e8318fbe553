"""투어 관련 Pydantic 요청/응답 스키마 정의.

Tour-related Pydantic request/response schema definitions.
Includes the GeoJSON point shapes embedded in a tour and the
aggregation rows returned by tour-stats and monthly-plan.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, model_validator

from tourbook.schemas.review import ReviewResponse
from tourbook.schemas.user import UserResponse

TourName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=40)]
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Difficulty = Literal["easy", "medium", "difficult"]
Rating = Annotated[float, Field(ge=1, le=5)]


class GeoPoint(BaseModel):
    """GeoJSON Point — coordinates는 [경도, 위도] 순서 ([lng, lat])."""

    type: Literal["Point"] = "Point"
    coordinates: Annotated[list[float], Field(min_length=2, max_length=2)]
    address: str | None = None
    description: str | None = None


class TourLocation(GeoPoint):
    """경유지 — 투어 일차(day)가 추가된 GeoJSON Point."""

    day: int | None = None


def _check_discount(price: float | None, price_discount: float | None) -> None:
    if price is not None and price_discount is not None and price_discount >= price:
        raise ValueError(f"Discount price ({price_discount}) should be lower than regular price.")


class TourCreate(BaseModel):
    """투어 생성 요청 스키마.

    Tour creation request schema.

    Attributes:
        name: 투어 이름, 10-40자 (Unique tour name)
        difficulty: 난이도 (easy | medium | difficult)
        price_discount: 할인가 — price보다 낮아야 함 (Must be lower than price)
        guides: 가이드 사용자 UUID 목록 (Guide user ids)
    """

    name: TourName
    duration: Annotated[int, Field(gt=0)]
    max_group_size: Annotated[int, Field(gt=0)]
    difficulty: Difficulty
    ratings_average: Rating = 4.5
    ratings_quantity: Annotated[int, Field(ge=0)] = 0
    price: Annotated[float, Field(ge=0)]
    price_discount: float | None = None
    summary: Trimmed
    description: Annotated[str, StringConstraints(strip_whitespace=True)] | None = None
    image_cover: str
    images: list[str] = []
    start_dates: list[datetime] = []
    premium_tour: bool = False
    start_location: GeoPoint | None = None
    locations: list[TourLocation] = []
    guides: list[UUID] = []

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourCreate":
        _check_discount(self.price, self.price_discount)
        return self


class TourUpdate(BaseModel):
    """투어 수정 요청 스키마 (부분 업데이트).

    Tour update request schema (partial update). The discount rule is checked
    against the stored price in TourService when only one side is sent.
    """

    name: TourName | None = None
    duration: Annotated[int, Field(gt=0)] | None = None
    max_group_size: Annotated[int, Field(gt=0)] | None = None
    difficulty: Difficulty | None = None
    ratings_average: Rating | None = None
    ratings_quantity: Annotated[int, Field(ge=0)] | None = None
    price: Annotated[float, Field(ge=0)] | None = None
    price_discount: float | None = None
    summary: Trimmed | None = None
    description: Annotated[str, StringConstraints(strip_whitespace=True)] | None = None
    image_cover: str | None = None
    images: list[str] | None = None
    start_dates: list[datetime] | None = None
    premium_tour: bool | None = None
    start_location: GeoPoint | None = None
    locations: list[TourLocation] | None = None
    guides: list[UUID] | None = None

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourUpdate":
        _check_discount(self.price, self.price_discount)
        return self


class GuideResponse(UserResponse):
    """투어에 포함되는 가이드 정보 — Populated guide (no password fields)."""


class TourResponse(BaseModel):
    """투어 응답 스키마.

    Tour response schema with virtual fields. `reviews` is only populated
    on single-tour reads.
    """

    id: UUID
    name: str
    slug: str
    duration: int
    duration_weeks: float
    max_group_size: int
    difficulty: str
    ratings_average: float
    ratings_quantity: int
    price: float
    price_discount: float | None = None
    summary: str
    description: str | None = None
    image_cover: str
    images: list[str] = []
    start_dates: list[datetime] = []
    start_location: GeoPoint | None = None
    locations: list[TourLocation] = []
    guides: list[GuideResponse] = []
    reviews: list[ReviewResponse] | None = None


# 목록 필터/정렬/필드 선택 허용 목록 — Query translator field lists
TOUR_FILTER_FIELDS: tuple[str, ...] = (
    "name", "slug", "duration", "max_group_size", "difficulty",
    "ratings_average", "ratings_quantity", "price", "price_discount", "created_at",
)
TOUR_OUTPUT_FIELDS: tuple[str, ...] = tuple(f for f in TourResponse.model_fields if f != "reviews")
# 중복 파라미터 허용 필드 — Fields where repeated params become IN filters
TOUR_WHITELIST: tuple[str, ...] = (
    "duration", "ratings_quantity", "ratings_average", "max_group_size", "difficulty", "price",
)


class TourStat(BaseModel):
    """난이도별 통계 행 — One row of /tour-stats."""

    difficulty: str
    num_tours: int
    num_ratings: int
    avg_rating: float
    avg_price: float
    min_price: float
    max_price: float


class MonthlyPlan(BaseModel):
    """월별 출발 계획 행 — One row of /monthly-plan/{year}."""

    month: int
    num_tour_starts: int
    tours: list[str]


class TourDistance(BaseModel):
    """기준점으로부터의 거리 — One row of /distances."""

    id: UUID
    name: str
    distance: float
