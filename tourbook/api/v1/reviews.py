"""리뷰 라우터 — /reviews 및 /tours/{tour_id}/reviews 엔드포인트.

Review Router — Mounted twice: at /reviews and nested under
/tours/{tour_id}/reviews, where the tour comes from the path.

Permission Matrix (역할별 권한 설계):
    - 목록/상세: 로그인 사용자 (Logged in)
    - 작성: user 역할만 (role "user" only)
    - 수정/삭제: admin, user (user는 본인 리뷰만, own reviews only)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.api.deps import get_current_user, restrict_to
from tourbook.database import get_db
from tourbook.models.user import User
from tourbook.schemas.common import DocumentResponse, ListResponse, document, listing
from tourbook.schemas.review import ReviewCreate, ReviewUpdate
from tourbook.services.review_service import review_service
from tourbook.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


def get_nested_tour_id(request: Request) -> UUID | None:
    """중첩 라우트의 투어 ID — None when mounted at /reviews."""
    raw: str | None = request.path_params.get("tour_id")
    if raw is None:
        return None
    try:
        return UUID(raw)
    except ValueError:
        raise BadRequestError(f"Invalid tour_id: {raw}.")


@router.get("", response_model=ListResponse)
async def list_reviews(
    request: Request,
    tour_id: Annotated[UUID | None, Depends(get_nested_tour_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ListResponse:
    """리뷰 목록 — 중첩 라우트에서는 해당 투어의 리뷰만."""
    return listing(await review_service.list_reviews(db, request.query_params.multi_items(), tour_id))


@router.post("", response_model=DocumentResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    tour_id: Annotated[UUID | None, Depends(get_nested_tour_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(restrict_to("user"))],
) -> DocumentResponse:
    """리뷰 작성 — 투어는 본문 또는 경로, 작성자는 로그인 사용자."""
    result = await review_service.create_review(db, current_user, data, tour_id)
    await db.commit()
    return document(result)


@router.get("/{review_id}", response_model=DocumentResponse)
async def get_review(
    review_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> DocumentResponse:
    return document(await review_service.get_review(db, review_id))


@router.patch("/{review_id}", response_model=DocumentResponse)
async def update_review(
    review_id: UUID,
    data: ReviewUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(restrict_to("user", "admin"))],
) -> DocumentResponse:
    """리뷰 수정 — 투어 평점이 다시 계산됩니다 (tour ratings recomputed)."""
    result = await review_service.update_review(db, current_user, review_id, data)
    await db.commit()
    return document(result)


@router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(restrict_to("user", "admin"))],
) -> None:
    await review_service.delete_review(db, current_user, review_id)
    await db.commit()
