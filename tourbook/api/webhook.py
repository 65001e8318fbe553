"""Stripe 웹훅 라우터 — 결제 완료 시 예약 생성.

Stripe webhook router. Mounted at the site root (not under /api/v1) and
reads the raw body, which the signature is computed over.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.database import get_db
from tourbook.services.booking_service import booking_service

router: APIRouter = APIRouter()


@router.post("/webhook-checkout")
async def webhook_checkout(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    stripe_signature: Annotated[str | None, Header()] = None,
) -> dict[str, bool]:
    """checkout.session.completed 이벤트로 예약을 기록합니다."""
    payload: bytes = await request.body()
    if await booking_service.handle_webhook(db, payload, stripe_signature):
        await db.commit()
    return {"received": True}
