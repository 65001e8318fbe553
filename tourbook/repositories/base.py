"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base CRUD Repository — Parent class for all domain repositories.
Provides generic Create, Read, Update, Delete operations. Every read goes
through _base_query(), which subclasses override to apply their default
scope (hidden rows) and eager loads, the way a find hook would.

Usage:
    class BookingRepository(BaseRepository[Booking]):
        def __init__(self) -> None:
            super().__init__(Booking)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.database import Base
from tourbook.utils.api_features import APIFeatures

# 제네릭 타입 변수 — SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic CRUD repository providing common database operations.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    def _base_query(self) -> Select:
        """기본 조회 쿼리 — 하위 클래스에서 기본 범위와 eager load 지정.

        Base SELECT for every read. Subclasses add default filters and
        relationship loading here.
        """
        return select(self.model)

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
    ) -> ModelType | None:
        """ID로 단일 레코드를 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 조회할 레코드의 UUID (UUID of the record to retrieve)

        Returns:
            ModelType | None: 조회된 레코드 또는 None (Found record or None)
        """
        query: Select = self._base_query().where(self.model.id == record_id)
        # 세션에 이미 있는 객체도 eager load 재적용 — Reload relationships on cached identities
        result = await db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    def features(
        self,
        params: Any,
        *,
        filter_fields: Sequence[str],
        output_fields: Sequence[str] = (),
        default_sort: str = "-created_at",
        whitelist: Sequence[str] = (),
        scope: dict[str, Any] | None = None,
    ) -> APIFeatures:
        """쿼리 문자열 기반 APIFeatures를 생성합니다.

        Build an APIFeatures over the base query, with optional fixed
        equality filters (e.g. {"tour_id": ...} for nested routes).
        """
        query: Select = self._base_query()
        for column_name, value in (scope or {}).items():
            query = query.where(getattr(self.model, column_name) == value)
        return (
            APIFeatures(
                self.model,
                query,
                params,
                filter_fields=filter_fields,
                output_fields=output_fields,
                default_sort=default_sort,
                whitelist=whitelist,
            )
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )

    async def get_list(
        self,
        db: AsyncSession,
        features: APIFeatures,
    ) -> Sequence[ModelType]:
        """APIFeatures 쿼리를 실행합니다 — Execute a translated list query."""
        result = await db.execute(features.query)
        return result.scalars().unique().all()

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """새 레코드를 생성합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            obj_data: 생성할 레코드의 데이터 딕셔너리
                      (Dictionary of data for the new record)

        Returns:
            ModelType: 생성된 레코드 (The created record)
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        db_obj: ModelType,
        update_data: dict[str, Any],
    ) -> ModelType:
        """기존 레코드를 업데이트합니다.

        Apply fields passed via exclude_unset to a loaded record.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            db_obj: 업데이트할 레코드 (Loaded record to update)
            update_data: 업데이트할 필드와 값의 딕셔너리
                         (Dictionary of fields and values to update)

        Returns:
            ModelType: 업데이트된 레코드 (Updated record)
        """
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        db_obj: ModelType,
    ) -> None:
        await db.delete(db_obj)
        await db.flush()

    async def exists(
        self,
        db: AsyncSession,
        filters: dict[str, Any],
        exclude_id: UUID | None = None,
    ) -> bool:
        """주어진 조건에 일치하는 레코드가 존재하는지 확인합니다.

        Check if a record matching the given filters exists, ignoring the
        default scope (hidden rows still count for uniqueness).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            filters: 검색 조건 딕셔너리 (Filter criteria dictionary)
            exclude_id: 제외할 레코드 ID — 수정 시 자기 자신 제외
                        (Record to ignore, used on updates)

        Returns:
            bool: 레코드 존재 여부 (Whether a matching record exists)
        """
        query: Select = select(func.count()).select_from(self.model)
        for column_name, value in filters.items():
            query = query.where(getattr(self.model, column_name) == value)
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)

        count: int = (await db.execute(query)).scalar() or 0
        return count > 0
