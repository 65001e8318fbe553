"""사용자 레포지토리 — 사용자 조회 및 인증용 쿼리.

User Repository — Lookup queries for users.
Deactivated users (active=False) are excluded from every read, so a
deleted-by-user account behaves as if it did not exist.
"""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.models.user import User, hash_reset_token
from tourbook.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리."""

    def __init__(self) -> None:
        super().__init__(User)

    def _base_query(self) -> Select:
        return select(User).where(User.active.is_(True))

    async def get_by_email(
        self,
        db: AsyncSession,
        email: str,
    ) -> User | None:
        """이메일로 활성 사용자를 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 조회할 이메일, 대소문자 무시 (Email, case-insensitive)

        Returns:
            User | None: 조회된 사용자 또는 None (Found user or None)
        """
        query: Select = self._base_query().where(User.email == email.strip().lower())
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_reset_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> User | None:
        """평문 재설정 토큰으로 사용자를 조회합니다 (만료 검사는 호출 측).

        Look up the user owning a plain reset token by its sha256 digest.
        Expiry is checked by the caller.
        """
        query: Select = self._base_query().where(
            User.password_reset_token == hash_reset_token(token)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, db: AsyncSession, user_ids: list) -> list[User]:
        if not user_ids:
            return []
        result = await db.execute(self._base_query().where(User.id.in_(user_ids)))
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
