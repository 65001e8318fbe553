"""투어 라우터 — 투어 CRUD, 통계, 지리 검색 엔드포인트.

Tour Router — CRUD, aggregation and geo endpoints for tours.

Permission Matrix (역할별 권한 설계):
    - 목록/상세/통계/지리 검색: 공개 (Public)
    - 월간 계획: admin, lead-guide, guide
    - 생성/수정/삭제: admin, lead-guide
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.api.deps import RequestBody, get_request_body, require_guides, require_staff
from tourbook.database import get_db
from tourbook.models.user import User
from tourbook.schemas.common import DocumentResponse, ListResponse, document, listing
from tourbook.schemas.tour import TourCreate
from tourbook.services.tour_service import tour_service

router: APIRouter = APIRouter()


@router.get("/top-5-cheap", response_model=ListResponse)
async def top_cheap_tours(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ListResponse:
    """평점 높은 순, 가격 낮은 순 상위 5개 투어.

    Top five tours by rating then price, with a short field set.
    """
    return listing(await tour_service.top_cheap(db, request.query_params.multi_items()))


@router.get("/tour-stats", response_model=DocumentResponse)
async def tour_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DocumentResponse:
    """난이도별 통계 (평점 4.5 이상 투어) — Stats per difficulty."""
    return document(await tour_service.get_tour_stats(db), key="stats")


@router.get("/monthly-plan/{year}", response_model=DocumentResponse)
async def monthly_plan(
    year: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_guides)],
) -> DocumentResponse:
    """연도별 월간 출발 계획 — Tour starts per month of the year."""
    return document(await tour_service.get_monthly_plan(db, year), key="plan")


@router.get("/tours-within/{distance}/center/{latlng}/unit/{unit}", response_model=ListResponse)
async def tours_within(
    distance: float,
    latlng: str,
    unit: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ListResponse:
    """기준점 반경 내 투어 — e.g. /tours-within/400/center/34.11,-118.11/unit/mi."""
    return listing(await tour_service.get_tours_within(db, distance, latlng, unit))


@router.get("/distances/{latlng}/unit/{unit}", response_model=DocumentResponse)
async def distances(
    latlng: str,
    unit: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DocumentResponse:
    """기준점에서 각 투어까지의 거리 — Distance to every tour, nearest first."""
    return document(await tour_service.get_distances(db, latlng, unit))


@router.get("", response_model=ListResponse)
async def list_tours(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ListResponse:
    """투어 목록 — 쿼리 문자열 필터/정렬/필드/페이지 지원.

    List tours. Supports ?price[lt]=1000&sort=price&fields=name,price&page=2.
    """
    return listing(await tour_service.list_tours(db, request.query_params.multi_items()))


@router.post("", response_model=DocumentResponse, status_code=201)
async def create_tour(
    data: TourCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> DocumentResponse:
    """새 투어를 생성합니다. admin, lead-guide만 가능."""
    result = await tour_service.create_tour(db, data)
    await db.commit()
    return document(result)


@router.get("/{tour_id}", response_model=DocumentResponse)
async def get_tour(
    tour_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DocumentResponse:
    """투어 상세 — 가이드와 리뷰 포함 (with guides and reviews)."""
    return document(await tour_service.get_tour(db, tour_id))


@router.patch("/{tour_id}", response_model=DocumentResponse)
async def update_tour(
    tour_id: UUID,
    body: Annotated[RequestBody, Depends(get_request_body)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> DocumentResponse:
    """투어를 수정합니다. JSON 또는 multipart (image_cover, images 최대 3장).

    Update a tour from JSON, or from a multipart form carrying an
    image_cover file and up to three images files.
    """
    result = await tour_service.update_tour(
        db,
        tour_id,
        body.fields,
        image_cover=body.file("image_cover"),
        images=body.file_list("images"),
    )
    await db.commit()
    return document(result)


@router.delete("/{tour_id}", status_code=204)
async def delete_tour(
    tour_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> None:
    """투어를 삭제합니다. 리뷰와 예약도 함께 삭제됩니다."""
    await tour_service.delete_tour(db, tour_id)
    await db.commit()
