"""리뷰 레포지토리 — 리뷰 CRUD 및 투어 평점 재계산.

Review Repository — CRUD for reviews. Every write recomputes the parent
tour's ratings_quantity and ratings_average once the change is flushed.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourbook.models.review import Review
from tourbook.models.tour import DEFAULT_RATINGS_AVERAGE, Tour
from tourbook.repositories.base import BaseRepository


class ReviewRepository(BaseRepository[Review]):
    """리뷰 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the reviews table.
    Reads populate the author (name and photo).
    """

    def __init__(self) -> None:
        super().__init__(Review)

    def _base_query(self) -> Select:
        return select(Review).options(selectinload(Review.user))

    async def get_tour_ids_for_user(self, db: AsyncSession, user_id: UUID) -> list[UUID]:
        """사용자가 리뷰한 투어 ID 목록 — Tours whose ratings depend on this user."""
        result = await db.execute(select(Review.tour_id).where(Review.user_id == user_id).distinct())
        return list(result.scalars().all())

    async def calc_average_ratings(
        self,
        db: AsyncSession,
        tour_id: UUID,
    ) -> None:
        """투어의 리뷰 수와 평균 평점을 다시 계산합니다.

        Recompute the tour's review count and mean rating. A tour with no
        reviews left goes back to 0 ratings and the default average.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            tour_id: 대상 투어 ID (Tour UUID)
        """
        result = await db.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.tour_id == tour_id)
        )
        quantity, average = result.one()

        tour: Tour | None = await db.get(Tour, tour_id)
        if tour is None:
            return
        if quantity:
            tour.ratings_quantity = quantity
            tour.ratings_average = float(average)
        else:
            tour.ratings_quantity = 0
            tour.ratings_average = DEFAULT_RATINGS_AVERAGE
        await db.flush()

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> Review:
        review: Review = await super().create(db, obj_data)
        await self.calc_average_ratings(db, review.tour_id)
        return review

    async def update(
        self,
        db: AsyncSession,
        db_obj: Review,
        update_data: dict[str, Any],
    ) -> Review:
        review: Review = await super().update(db, db_obj, update_data)
        await self.calc_average_ratings(db, review.tour_id)
        return review

    async def delete(
        self,
        db: AsyncSession,
        db_obj: Review,
    ) -> None:
        tour_id: UUID = db_obj.tour_id
        await super().delete(db, db_obj)
        await self.calc_average_ratings(db, tour_id)


# 싱글턴 인스턴스 — Singleton instance
review_repository: ReviewRepository = ReviewRepository()
