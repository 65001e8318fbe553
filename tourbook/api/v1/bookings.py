"""예약 라우터 — 결제 세션 및 예약 관리 엔드포인트.

Booking Router — Stripe checkout session for the logged-in user and
booking management for staff.

Permission Matrix (역할별 권한 설계):
    - checkout-session: 로그인 사용자 (Logged in)
    - 예약 목록/생성/상세/수정/삭제: admin, lead-guide
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.api.deps import get_current_user, require_staff
from tourbook.database import get_db
from tourbook.models.user import User
from tourbook.schemas.booking import BookingCreate, BookingUpdate, CheckoutSessionResponse
from tourbook.schemas.common import DocumentResponse, ListResponse, document, listing
from tourbook.services.booking_service import booking_service

router: APIRouter = APIRouter()


@router.get("/checkout-session/{tour_id}", response_model=CheckoutSessionResponse)
async def get_checkout_session(
    tour_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> CheckoutSessionResponse:
    """투어 결제용 Stripe Checkout 세션을 생성합니다.

    Create a checkout session; the client redirects to session.url.
    """
    session = await booking_service.create_checkout_session(
        db, current_user, tour_id, str(request.base_url)
    )
    return CheckoutSessionResponse(session=session)


@router.get("", response_model=ListResponse)
async def list_bookings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> ListResponse:
    return listing(await booking_service.list_bookings(db, request.query_params.multi_items()))


@router.post("", response_model=DocumentResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> DocumentResponse:
    """수동 예약 생성 — Record a booking paid outside Stripe."""
    result = await booking_service.create_booking(db, data)
    await db.commit()
    return document(result)


@router.get("/{booking_id}", response_model=DocumentResponse)
async def get_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> DocumentResponse:
    return document(await booking_service.get_booking(db, booking_id))


@router.patch("/{booking_id}", response_model=DocumentResponse)
async def update_booking(
    booking_id: UUID,
    data: BookingUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> DocumentResponse:
    result = await booking_service.update_booking(db, booking_id, data)
    await db.commit()
    return document(result)


@router.delete("/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> None:
    await booking_service.delete_booking(db, booking_id)
    await db.commit()
