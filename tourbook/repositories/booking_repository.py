"""예약 레포지토리 — 예약 CRUD 및 사용자별 예약 투어 조회.

Booking Repository — CRUD for bookings. Reads populate the booking user
and the tour name.
"""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourbook.models.booking import Booking
from tourbook.repositories.base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    """예약 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Booking)

    def _base_query(self) -> Select:
        return select(Booking).options(selectinload(Booking.user), selectinload(Booking.tour))

    async def get_tour_ids_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[UUID]:
        """사용자가 예약한 투어 ID 목록을 조회합니다.

        Return the ids of every tour the user has booked, oldest booking
        first, without duplicates.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 ID (User UUID)

        Returns:
            list[UUID]: 투어 ID 목록 (Booked tour ids)
        """
        query: Select = (
            select(Booking.tour_id)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at)
        )
        result = await db.execute(query)
        return list(dict.fromkeys(result.scalars().all()))


# 싱글턴 인스턴스 — Singleton instance
booking_repository: BookingRepository = BookingRepository()
