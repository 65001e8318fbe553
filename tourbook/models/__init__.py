"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    tour: 투어 및 투어-가이드 연결 (Tour and tour_guides association)
    user: 사용자 (User accounts)
    review: 리뷰 (Tour reviews)
    booking: 예약 (Paid bookings)
"""

from tourbook.models.tour import Tour, tour_guides
from tourbook.models.user import User
from tourbook.models.review import Review
from tourbook.models.booking import Booking

__all__ = [
    "Tour", "tour_guides",
    "User",
    "Review",
    "Booking",
]
