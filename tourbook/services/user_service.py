"""사용자 서비스 — 본인 정보 관리 및 관리자용 사용자 CRUD 비즈니스 로직.

User Service — Business logic for the current user's own profile and the
admin user management endpoints.
"""

from typing import Any
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.models.user import User
from tourbook.repositories.review_repository import review_repository
from tourbook.repositories.user_repository import user_repository
from tourbook.schemas.user import (
    USER_FILTER_FIELDS,
    USER_OUTPUT_FIELDS,
    UpdateMeRequest,
    UserResponse,
    UserUpdate,
)
from tourbook.services.image_service import image_service
from tourbook.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

# updateMe에서 거부하는 필드 — Password changes go through updateMyPassword
_PASSWORD_FIELDS: frozenset[str] = frozenset({"password", "password_confirm"})


class UserService:
    """사용자 관련 비즈니스 로직을 처리하는 서비스."""

    def _to_response(self, user: User) -> dict[str, Any]:
        return UserResponse.model_validate(user).model_dump(mode="json")

    async def _check_email_free(self, db: AsyncSession, email: str, user_id: UUID) -> None:
        if await user_repository.exists(db, {"email": email}, exclude_id=user_id):
            raise DuplicateError("Email already in use. Please use another email!")

    async def _get_or_404(self, db: AsyncSession, user_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("No user found with that ID")
        return user

    async def list_users(
        self,
        db: AsyncSession,
        params: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        """사용자 목록을 조회합니다 (관리자). 쿼리 문자열 필터/정렬/페이지 적용."""
        features = user_repository.features(
            params,
            filter_fields=USER_FILTER_FIELDS,
            output_fields=USER_OUTPUT_FIELDS,
        )
        users = await user_repository.get_list(db, features)
        return [features.project(self._to_response(u)) for u in users]

    async def get_user(self, db: AsyncSession, user_id: UUID) -> dict[str, Any]:
        return self._to_response(await self._get_or_404(db, user_id))

    async def update_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: UserUpdate,
    ) -> dict[str, Any]:
        """사용자 정보를 수정합니다 (관리자). 비밀번호는 변경하지 않습니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 수정할 사용자 ID (User UUID)
            data: 수정 데이터 (Partial update data)

        Returns:
            dict[str, Any]: 수정된 사용자 (Updated user document)

        Raises:
            NotFoundError: 사용자가 없을 때 (User not found)
            DuplicateError: 이메일 중복 (Email already in use)
        """
        user: User = await self._get_or_404(db, user_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in update_data:
            await self._check_email_free(db, update_data["email"], user.id)
        user = await user_repository.update(db, user, update_data)
        return self._to_response(user)

    async def delete_user(self, db: AsyncSession, user_id: UUID) -> None:
        """사용자를 영구 삭제합니다 (관리자).

        Hard delete. The user's reviews and bookings go with it, so the
        ratings of every tour they reviewed are recomputed afterwards.
        """
        user: User = await self._get_or_404(db, user_id)
        reviewed_tour_ids: list[UUID] = await review_repository.get_tour_ids_for_user(db, user.id)
        await user_repository.delete(db, user)
        for tour_id in reviewed_tour_ids:
            await review_repository.calc_average_ratings(db, tour_id)

    def get_me(self, user: User) -> dict[str, Any]:
        return self._to_response(user)

    async def update_me(
        self,
        db: AsyncSession,
        user: User,
        fields: dict[str, Any],
        photo: UploadFile | None = None,
    ) -> dict[str, Any]:
        """본인 이름/이메일/사진을 수정합니다.

        Update the caller's name, email and photo. Any other key in the body
        is ignored; password fields are rejected.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 현재 사용자 (Current user)
            fields: 요청 본문 필드 (Raw body fields, JSON or form)
            photo: 업로드된 사진 (Uploaded photo, optional)

        Raises:
            BadRequestError: 비밀번호 필드 포함 또는 잘못된 이미지
                             (Password fields sent, or a non-image upload)
        """
        if _PASSWORD_FIELDS & fields.keys():
            raise BadRequestError("This route is not for password updates. Please use /updateMyPassword.")

        data = UpdateMeRequest.model_validate(fields)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in update_data:
            await self._check_email_free(db, update_data["email"], user.id)

        if photo is not None:
            update_data["photo"] = await image_service.save_user_photo(
                str(user.id), await photo.read(), photo.content_type
            )

        user = await user_repository.update(db, user, update_data)
        return self._to_response(user)

    async def delete_me(self, db: AsyncSession, user: User) -> None:
        """계정 비활성화 — The account is kept but hidden from every lookup."""
        await user_repository.update(db, user, {"active": False})


# 싱글턴 인스턴스 — Singleton instance
user_service: UserService = UserService()
