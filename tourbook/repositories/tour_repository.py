"""투어 레포지토리 — 투어 CRUD, 집계 및 지리 쿼리.

Tour Repository — CRUD, aggregation and geo queries for tours.
Premium tours are hidden from every read; guides are eager-loaded by the
relationship itself (lazy="selectin").
"""

import logging
import time
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourbook.models.review import Review
from tourbook.models.tour import Tour
from tourbook.repositories.base import BaseRepository
from tourbook.utils.api_features import APIFeatures
from tourbook.utils.dates import as_utc

logger = logging.getLogger(__name__)

# 통계 대상 최소 평점 — Only well-rated tours are counted in tour-stats
STATS_MIN_RATING: float = 4.5


class TourRepository(BaseRepository[Tour]):
    """투어 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the tours table.
    """

    def __init__(self) -> None:
        super().__init__(Tour)

    def _base_query(self) -> Select:
        return select(Tour).where(Tour.premium_tour.is_(False))

    async def get_list(
        self,
        db: AsyncSession,
        features: APIFeatures,
    ) -> Sequence[Tour]:
        started: float = time.perf_counter()
        tours = await super().get_list(db, features)
        logger.debug("Tour query took %.1f ms", (time.perf_counter() - started) * 1000)
        return tours

    async def get_with_reviews(
        self,
        db: AsyncSession,
        tour_id: UUID,
    ) -> Tour | None:
        """리뷰와 작성자를 포함해 투어를 조회합니다.

        Retrieve a tour with its reviews and their authors eagerly loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            tour_id: 투어 ID (Tour UUID)

        Returns:
            Tour | None: 리뷰가 로드된 투어 또는 None
                         (Tour with reviews loaded, or None)
        """
        query: Select = (
            self._base_query()
            .options(selectinload(Tour.reviews).selectinload(Review.user))
            .where(Tour.id == tour_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_slug(
        self,
        db: AsyncSession,
        slug: str,
    ) -> Tour | None:
        query: Select = (
            self._base_query()
            .options(selectinload(Tour.reviews).selectinload(Review.user))
            .where(Tour.slug == slug)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_stats(self, db: AsyncSession) -> list[dict]:
        """난이도별 투어 통계를 집계합니다.

        Aggregate tours rated >= 4.5 by upper-cased difficulty, cheapest
        average price first.

        Returns:
            list[dict]: difficulty, num_tours, num_ratings, avg_rating,
                        avg_price, min_price, max_price 행 목록
        """
        difficulty = func.upper(Tour.difficulty).label("difficulty")
        avg_price = func.avg(Tour.price).label("avg_price")
        query: Select = (
            select(
                difficulty,
                func.count(Tour.id).label("num_tours"),
                func.coalesce(func.sum(Tour.ratings_quantity), 0).label("num_ratings"),
                func.avg(Tour.ratings_average).label("avg_rating"),
                avg_price,
                func.min(Tour.price).label("min_price"),
                func.max(Tour.price).label("max_price"),
            )
            .where(Tour.premium_tour.is_(False), Tour.ratings_average >= STATS_MIN_RATING)
            .group_by(func.upper(Tour.difficulty))
            .order_by(avg_price)
        )
        result = await db.execute(query)
        return [dict(row._mapping) for row in result.all()]

    async def get_monthly_plan(self, db: AsyncSession, year: int) -> list[dict]:
        """연도별 월간 출발 계획을 계산합니다.

        Unwind every tour's start dates, keep those within the year, and
        group them by month. Busiest months first, at most 12 rows.
        """
        result = await db.execute(self._base_query())
        months: dict[int, list[str]] = {}
        for tour in result.scalars().all():
            for raw in tour.start_dates or []:
                start = as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
                if start.year == year:
                    months.setdefault(start.month, []).append(tour.name)

        plan = [
            {"month": month, "num_tour_starts": len(names), "tours": names}
            for month, names in months.items()
        ]
        plan.sort(key=lambda row: (-row["num_tour_starts"], row["month"]))
        return plan[:12]

    async def get_all(self, db: AsyncSession) -> list[Tour]:
        """공개된 모든 투어를 이름순으로 조회합니다 — Every visible tour, by name."""
        query: Select = self._base_query().order_by(Tour.name)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_many(self, db: AsyncSession, tour_ids: list[UUID]) -> list[Tour]:
        if not tour_ids:
            return []
        result = await db.execute(self._base_query().where(Tour.id.in_(tour_ids)).order_by(Tour.name))
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
tour_repository: TourRepository = TourRepository()
