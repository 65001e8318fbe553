"""예약 SQLAlchemy ORM 모델 정의.

Booking SQLAlchemy ORM model definition.
Join entity between a user and a tour, created after a completed checkout.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourbook.database import Base


class Booking(Base):
    """예약 모델.

    Booking model — Records that a user paid for a tour.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        tour_id: 예약 투어 FK (Booked tour)
        user_id: 예약자 FK (Booking user)
        price: 결제 금액 (Price paid)
        paid: 결제 완료 여부 (Paid flag, default True)
        created_at: 예약 일시 (Creation timestamp)
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tour_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    paid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    tour = relationship("Tour", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
