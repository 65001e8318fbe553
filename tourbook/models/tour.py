"""투어 관련 SQLAlchemy ORM 모델 정의.

Tour SQLAlchemy ORM model definitions.
Embedded documents (GeoJSON start location, stop list, images, start dates)
are stored in JSON columns; guides are a many-to-many reference to users.

Tables:
    - tours: 투어 (Tour catalogue)
    - tour_guides: 투어-가이드 연결 (Tour to guide user association)
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any

from slugify import slugify
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from tourbook.database import Base

DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "difficult")

# 리뷰가 없을 때의 기본 평점 — Rating shown for tours without reviews
DEFAULT_RATINGS_AVERAGE: float = 4.5


# 투어-가이드 다대다 연결 테이블 — Tour/guide association table
tour_guides: Table = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", Uuid, ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Tour(Base):
    """투어 모델 — 판매 중인 투어 상품.

    Tour model — A bookable tour.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 투어 이름, 고유 (Unique tour name, 10-40 chars)
        slug: URL 슬러그 (URL slug derived from name)
        duration: 기간(일) (Duration in days)
        max_group_size: 최대 인원 (Maximum group size)
        difficulty: 난이도 (easy | medium | difficult)
        ratings_average: 평균 평점 (Average rating, rounded to 1 decimal)
        ratings_quantity: 리뷰 수 (Number of ratings)
        price: 가격 (Price)
        price_discount: 할인가 (Discounted price, lower than price)
        summary: 요약 (Short summary)
        description: 상세 설명 (Long description)
        image_cover: 커버 이미지 파일명 (Cover image file name)
        images: 이미지 파일명 목록 (Gallery file names)
        start_dates: 출발일 목록, ISO 문자열 (Start dates as ISO strings)
        premium_tour: 프리미엄 여부 — 조회 쿼리에서 항상 숨김 (Hidden from finds)
        start_location: 출발 위치 GeoJSON Point (Start location)
        locations: 경유지 목록 GeoJSON Point + day (Stops)

    Relationships:
        guides: 가이드 사용자 목록 (Guide users)
        reviews: 리뷰 목록 (Reviews, cascade delete)
        bookings: 예약 목록 (Bookings, cascade delete)
    """

    __tablename__ = "tours"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(60), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    max_group_size: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False)
    ratings_average: Mapped[float] = mapped_column(Float, default=DEFAULT_RATINGS_AVERAGE, nullable=False)
    ratings_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    price_discount: Mapped[float | None] = mapped_column(Float, nullable=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_cover: Mapped[str] = mapped_column(String(255), nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    start_dates: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    premium_tour: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_location: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    locations: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    # 생성 일시 — API 응답에는 노출하지 않음 (never returned by the API)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_tours_price_ratings", "price", "ratings_average"),
        Index("ix_tours_slug", "slug"),
    )

    # 관계 — Relationships
    guides = relationship("User", secondary=tour_guides, lazy="selectin")
    reviews = relationship("Review", back_populates="tour", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="tour", cascade="all, delete-orphan")

    @validates("name")
    def _sync_slug(self, key: str, value: str) -> str:
        self.slug = slugify(value)
        return value

    @validates("ratings_average")
    def _round_rating(self, key: str, value: float) -> float:
        # 4.666 -> 4.7
        return math.floor(value * 10 + 0.5) / 10

    @property
    def duration_weeks(self) -> float:
        return self.duration / 7
