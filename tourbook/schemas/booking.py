"""예약 관련 Pydantic 요청/응답 스키마 정의.

Booking-related Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tourbook.schemas.user import UserResponse


class BookingCreate(BaseModel):
    """수동 예약 생성 요청 (관리자) — Manual booking by staff."""

    tour_id: UUID
    user_id: UUID
    price: Annotated[float, Field(ge=0)]
    paid: bool = True


class BookingUpdate(BaseModel):
    price: Annotated[float, Field(ge=0)] | None = None
    paid: bool | None = None


class BookingTour(BaseModel):
    """예약에 포함되는 투어 요약 — Populated tour (name only)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tour: BookingTour
    user: UserResponse
    price: float
    paid: bool
    created_at: datetime


class CheckoutSessionResponse(BaseModel):
    """결제 세션 응답 — {"status": "success", "session": {...}}."""

    status: str = "success"
    session: dict[str, Any]


BOOKING_FILTER_FIELDS: tuple[str, ...] = ("tour_id", "user_id", "price", "paid", "created_at")
BOOKING_OUTPUT_FIELDS: tuple[str, ...] = tuple(BookingResponse.model_fields)
