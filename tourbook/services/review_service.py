"""리뷰 서비스 — 리뷰 CRUD 비즈니스 로직.

Review Service — Business logic for review CRUD, both at /reviews and
nested under /tours/{tour_id}/reviews. Ratings on the parent tour are kept
in sync by ReviewRepository.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.models.review import Review
from tourbook.models.user import User
from tourbook.repositories.review_repository import review_repository
from tourbook.repositories.tour_repository import tour_repository
from tourbook.schemas.review import (
    REVIEW_FILTER_FIELDS,
    REVIEW_OUTPUT_FIELDS,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from tourbook.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError


class ReviewService:
    """리뷰 관련 비즈니스 로직을 처리하는 서비스.

    Service handling review business logic. Users with the "user" role may
    only change or remove their own reviews; admins may change any.
    """

    def _to_response(self, review: Review) -> dict[str, Any]:
        return ReviewResponse.model_validate(review).model_dump(mode="json")

    async def _get_or_404(self, db: AsyncSession, review_id: UUID) -> Review:
        review: Review | None = await review_repository.get_by_id(db, review_id)
        if review is None:
            raise NotFoundError("No review found with that ID")
        return review

    def _check_owner(self, review: Review, user: User) -> None:
        if user.role == "user" and review.user_id != user.id:
            raise ForbiddenError("You can only modify your own reviews")

    async def list_reviews(
        self,
        db: AsyncSession,
        params: list[tuple[str, str]],
        tour_id: UUID | None = None,
    ) -> list[dict[str, Any]]:
        """리뷰 목록을 조회합니다. 중첩 라우트에서는 해당 투어로 한정됩니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            params: 쿼리 문자열 키-값 쌍 (Query string items)
            tour_id: 중첩 라우트의 투어 ID (Tour from the nested route, optional)

        Returns:
            list[dict[str, Any]]: 리뷰 문서 목록 (Review documents)
        """
        features = review_repository.features(
            params,
            filter_fields=REVIEW_FILTER_FIELDS,
            output_fields=REVIEW_OUTPUT_FIELDS,
            scope={"tour_id": tour_id} if tour_id is not None else None,
        )
        reviews = await review_repository.get_list(db, features)
        return [features.project(self._to_response(r)) for r in reviews]

    async def get_review(self, db: AsyncSession, review_id: UUID) -> dict[str, Any]:
        return self._to_response(await self._get_or_404(db, review_id))

    async def create_review(
        self,
        db: AsyncSession,
        user: User,
        data: ReviewCreate,
        tour_id: UUID | None = None,
    ) -> dict[str, Any]:
        """리뷰를 작성합니다.

        The tour comes from the body or the nested route; the author is the
        caller. A user reviews each tour at most once.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 현재 사용자 (Current user)
            data: 리뷰 생성 데이터 (Review creation data)
            tour_id: 중첩 라우트의 투어 ID (Tour from the nested route)

        Returns:
            dict[str, Any]: 생성된 리뷰 (Created review document)

        Raises:
            BadRequestError: 투어 미지정 (No tour given)
            ForbiddenError: 다른 사용자 명의로 작성 시도 (Posting as someone else)
            NotFoundError: 투어가 없을 때 (Tour not found)
            DuplicateError: 이미 리뷰한 투어 (Tour already reviewed)
        """
        target_tour_id: UUID | None = data.tour_id or tour_id
        if target_tour_id is None:
            raise BadRequestError("Review must belong to a tour.")
        if data.user_id is not None and data.user_id != user.id:
            raise ForbiddenError("You can only post reviews as yourself")

        if await tour_repository.get_by_id(db, target_tour_id) is None:
            raise NotFoundError("No tour found with that ID")
        if await review_repository.exists(db, {"tour_id": target_tour_id, "user_id": user.id}):
            raise DuplicateError("You have already reviewed this tour.")

        review: Review = await review_repository.create(
            db,
            {"review": data.review, "rating": data.rating, "tour_id": target_tour_id, "user_id": user.id},
        )
        return await self.get_review(db, review.id)

    async def update_review(
        self,
        db: AsyncSession,
        user: User,
        review_id: UUID,
        data: ReviewUpdate,
    ) -> dict[str, Any]:
        review: Review = await self._get_or_404(db, review_id)
        self._check_owner(review, user)
        await review_repository.update(db, review, data.model_dump(exclude_unset=True, exclude_none=True))
        return await self.get_review(db, review.id)

    async def delete_review(self, db: AsyncSession, user: User, review_id: UUID) -> None:
        review: Review = await self._get_or_404(db, review_id)
        self._check_owner(review, user)
        await review_repository.delete(db, review)


# 싱글턴 인스턴스 — Singleton instance
review_service: ReviewService = ReviewService()
