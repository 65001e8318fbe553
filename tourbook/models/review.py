"""리뷰 SQLAlchemy ORM 모델 정의.

Review SQLAlchemy ORM model definition.
A user may review each tour at most once (uq_review_tour_user).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourbook.database import Base


class Review(Base):
    """리뷰 모델 — 투어에 대한 사용자 평가.

    Review model — A user's rating and short text for a tour.
    Creating, updating, or deleting a review recomputes the parent tour's
    ratings_average / ratings_quantity (see ReviewRepository).

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        review: 리뷰 본문, 최대 50자 (Review text, max 50 chars)
        rating: 평점 1-5 (Rating 1-5)
        created_at: 작성 일시 (Creation timestamp)
        tour_id: 대상 투어 FK (Reviewed tour)
        user_id: 작성자 FK (Author)
    """

    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    review: Mapped[str] = mapped_column(String(50), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    tour_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("tour_id", "user_id", name="uq_review_tour_user"),
    )

    # 관계 — Relationships
    tour = relationship("Tour", back_populates="reviews")
    user = relationship("User", back_populates="reviews")
