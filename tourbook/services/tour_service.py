"""투어 서비스 — 투어 CRUD, 통계, 월간 계획, 지리 검색 비즈니스 로직.

Tour Service — Business logic for tour CRUD, the aggregation endpoints
(tour-stats, monthly-plan) and the geo lookups (tours-within, distances).
Responses are built explicitly from loaded columns so no lazy relationship
is touched outside the async session.
"""

from typing import Any
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.models.tour import Tour
from tourbook.models.user import User
from tourbook.repositories.tour_repository import tour_repository
from tourbook.repositories.user_repository import user_repository
from tourbook.schemas.review import ReviewResponse
from tourbook.schemas.tour import (
    TOUR_FILTER_FIELDS,
    TOUR_OUTPUT_FIELDS,
    TOUR_WHITELIST,
    GuideResponse,
    MonthlyPlan,
    TourCreate,
    TourDistance,
    TourResponse,
    TourStat,
    TourUpdate,
)
from tourbook.services.image_service import image_service
from tourbook.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from tourbook.utils.geo import check_unit, haversine, parse_latlng, point_coordinates

# 투어 목록 기본 정렬 — Best rated first
DEFAULT_SORT: str = "-ratings_average"

# top-5-cheap 별칭이 덮어쓰는 쿼리 — Query the top-5-cheap alias forces
TOP_CHEAP_PARAMS: list[tuple[str, str]] = [
    ("limit", "5"),
    ("sort", "-ratings_average,price"),
    ("fields", "name,price,ratings_average,summary,difficulty"),
]


class TourService:
    """투어 관련 비즈니스 로직을 처리하는 서비스.

    Service handling tour business logic.
    """

    def _to_response(self, tour: Tour, with_reviews: bool = False) -> TourResponse:
        """투어 모델을 응답 스키마로 변환합니다.

        Convert a Tour to a TourResponse. Reviews are included only when the
        caller loaded them (single-tour reads).

        Args:
            tour: 투어 모델 (Tour model instance)
            with_reviews: 리뷰 포함 여부 (Include the populated reviews)

        Returns:
            TourResponse: 투어 응답 (Tour response)
        """
        return TourResponse(
            id=tour.id,
            name=tour.name,
            slug=tour.slug,
            duration=tour.duration,
            duration_weeks=tour.duration_weeks,
            max_group_size=tour.max_group_size,
            difficulty=tour.difficulty,
            ratings_average=tour.ratings_average,
            ratings_quantity=tour.ratings_quantity,
            price=tour.price,
            price_discount=tour.price_discount,
            summary=tour.summary,
            description=tour.description,
            image_cover=tour.image_cover,
            images=tour.images or [],
            start_dates=tour.start_dates or [],
            start_location=tour.start_location or None,
            locations=tour.locations or [],
            guides=[GuideResponse.model_validate(g) for g in tour.guides],
            reviews=(
                [ReviewResponse.model_validate(r) for r in tour.reviews] if with_reviews else None
            ),
        )

    def _document(self, tour: Tour, with_reviews: bool = False) -> dict[str, Any]:
        return self._to_response(tour, with_reviews).model_dump(
            mode="json", exclude=None if with_reviews else {"reviews"}
        )

    async def _get_or_404(self, db: AsyncSession, tour_id: UUID) -> Tour:
        tour: Tour | None = await tour_repository.get_by_id(db, tour_id)
        if tour is None:
            raise NotFoundError("No tour found with that ID")
        return tour

    async def _resolve_guides(self, db: AsyncSession, guide_ids: list[UUID]) -> list[User]:
        guides: list[User] = await user_repository.get_many(db, guide_ids)
        if len(guides) != len(set(guide_ids)):
            raise BadRequestError("Invalid guide: every guide must be an existing user.")
        return guides

    def _column_values(self, data: dict[str, Any]) -> dict[str, Any]:
        """스키마 덤프를 JSON 컬럼 형식으로 변환 — start dates become ISO strings."""
        if data.get("start_dates") is not None:
            data["start_dates"] = [d.isoformat() for d in data["start_dates"]]
        return data

    async def list_tours(
        self,
        db: AsyncSession,
        params: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        """투어 목록을 조회합니다 (필터/정렬/필드 선택/페이지네이션).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            params: 쿼리 문자열 키-값 쌍 (Query string items, repeats kept)

        Returns:
            list[dict[str, Any]]: 투영된 투어 문서 목록 (Projected tour documents)
        """
        features = tour_repository.features(
            params,
            filter_fields=TOUR_FILTER_FIELDS,
            output_fields=TOUR_OUTPUT_FIELDS,
            default_sort=DEFAULT_SORT,
            whitelist=TOUR_WHITELIST,
        )
        tours = await tour_repository.get_list(db, features)
        return [features.project(self._document(t)) for t in tours]

    async def top_cheap(
        self,
        db: AsyncSession,
        params: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        """상위 5개 저가 투어 — Alias of list_tours with a fixed limit/sort/fields."""
        forced = {key for key, _ in TOP_CHEAP_PARAMS}
        aliased = [(k, v) for k, v in params if k not in forced] + TOP_CHEAP_PARAMS
        return await self.list_tours(db, aliased)

    async def get_tour(self, db: AsyncSession, tour_id: UUID) -> dict[str, Any]:
        """투어 상세 — 가이드와 리뷰(작성자 포함)를 함께 반환합니다."""
        tour: Tour | None = await tour_repository.get_with_reviews(db, tour_id)
        if tour is None:
            raise NotFoundError("No tour found with that ID")
        return self._document(tour, with_reviews=True)

    async def create_tour(
        self,
        db: AsyncSession,
        data: TourCreate,
    ) -> dict[str, Any]:
        """새 투어를 생성합니다.

        Raises:
            DuplicateError: 같은 이름의 투어가 있을 때 (Tour name taken)
            BadRequestError: 존재하지 않는 가이드 (Unknown guide id)
        """
        if await tour_repository.exists(db, {"name": data.name}):
            raise DuplicateError(f"Duplicate field value: {data.name}. Please use another value!")

        values: dict[str, Any] = self._column_values(data.model_dump(exclude={"guides"}))
        values["guides"] = await self._resolve_guides(db, data.guides)
        tour: Tour = await tour_repository.create(db, values)
        return self._document(tour)

    async def update_tour(
        self,
        db: AsyncSession,
        tour_id: UUID,
        fields: dict[str, Any],
        image_cover: UploadFile | None = None,
        images: list[UploadFile] | None = None,
    ) -> dict[str, Any]:
        """투어를 부분 수정합니다. 커버/갤러리 이미지 업로드를 함께 처리합니다.

        Partially update a tour from a JSON or multipart body. Uploaded
        cover and gallery images are resized and replace the stored names.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            tour_id: 투어 ID (Tour UUID)
            fields: 요청 본문 필드 (Raw body fields)
            image_cover: 커버 이미지 파일 (Cover upload, optional)
            images: 갤러리 이미지 파일, 최대 3장 (Up to 3 gallery uploads)

        Returns:
            dict[str, Any]: 수정된 투어 (Updated tour document)

        Raises:
            NotFoundError: 투어가 없을 때 (Tour not found)
            DuplicateError: 이름 중복 (Tour name taken)
            BadRequestError: 할인가가 가격 이상일 때 (Discount not below price)
        """
        tour: Tour = await self._get_or_404(db, tour_id)
        data = TourUpdate.model_validate(fields)
        update_data: dict[str, Any] = self._column_values(data.model_dump(exclude_unset=True))

        if "name" in update_data:
            if await tour_repository.exists(db, {"name": update_data["name"]}, exclude_id=tour.id):
                raise DuplicateError(f"Duplicate field value: {update_data['name']}. Please use another value!")

        price = update_data.get("price", tour.price)
        discount = update_data.get("price_discount", tour.price_discount)
        if discount is not None and price is not None and discount >= price:
            raise BadRequestError(f"Discount price ({discount}) should be lower than regular price.")

        if "guides" in update_data:
            update_data["guides"] = await self._resolve_guides(db, update_data["guides"] or [])

        if image_cover is not None:
            update_data["image_cover"] = await image_service.save_tour_cover(
                str(tour.id), await image_cover.read(), image_cover.content_type
            )
        if images:
            update_data["images"] = await image_service.save_tour_images(
                str(tour.id), [(await f.read(), f.content_type) for f in images]
            )

        tour = await tour_repository.update(db, tour, update_data)
        return self._document(tour)

    async def delete_tour(self, db: AsyncSession, tour_id: UUID) -> None:
        """투어를 삭제합니다 — Reviews and bookings of the tour go with it."""
        tour: Tour = await self._get_or_404(db, tour_id)
        await tour_repository.delete(db, tour)

    async def get_tour_stats(self, db: AsyncSession) -> list[TourStat]:
        rows = await tour_repository.get_stats(db)
        return [TourStat.model_validate(row) for row in rows]

    async def get_monthly_plan(self, db: AsyncSession, year: int) -> list[MonthlyPlan]:
        rows = await tour_repository.get_monthly_plan(db, year)
        return [MonthlyPlan.model_validate(row) for row in rows]

    async def get_tours_within(
        self,
        db: AsyncSession,
        distance: float,
        latlng: str,
        unit: str,
    ) -> list[dict[str, Any]]:
        """기준점 반경 내에 출발 위치가 있는 투어를 찾습니다.

        Find tours whose start location lies within `distance` (in `unit`)
        of the given "lat,lng" point.

        Raises:
            BadRequestError: 좌표 형식 또는 단위 오류 (Bad coordinates or unit)
        """
        lat, lng = parse_latlng(latlng)
        check_unit(unit)
        if distance < 0:
            raise BadRequestError("Distance must be a positive number.")

        found: list[dict[str, Any]] = []
        for tour in await tour_repository.get_all(db):
            point = point_coordinates(tour.start_location)
            if point is not None and haversine(lat, lng, point[0], point[1], unit) <= distance:
                found.append(self._document(tour))
        return found

    async def get_distances(
        self,
        db: AsyncSession,
        latlng: str,
        unit: str,
    ) -> list[TourDistance]:
        """각 투어 출발 위치까지의 거리 — Nearest first."""
        lat, lng = parse_latlng(latlng)
        check_unit(unit)

        distances: list[TourDistance] = []
        for tour in await tour_repository.get_all(db):
            point = point_coordinates(tour.start_location)
            if point is None:
                continue
            distance = haversine(lat, lng, point[0], point[1], unit)
            distances.append(TourDistance(id=tour.id, name=tour.name, distance=round(distance, 3)))
        distances.sort(key=lambda d: d.distance)
        return distances


# 싱글턴 인스턴스 — Singleton instance
tour_service: TourService = TourService()
