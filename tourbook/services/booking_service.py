"""예약 서비스 — Stripe 결제 세션, 웹훅, 예약 CRUD 비즈니스 로직.

Booking Service — Business logic for Stripe Checkout sessions, the
checkout.session.completed webhook that records a paid booking, and the
staff booking CRUD endpoints.
"""

import logging
from typing import Any
from uuid import UUID

import stripe
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from tourbook.config import settings
from tourbook.models.booking import Booking
from tourbook.models.tour import Tour
from tourbook.models.user import User
from tourbook.repositories.booking_repository import booking_repository
from tourbook.repositories.tour_repository import tour_repository
from tourbook.repositories.user_repository import user_repository
from tourbook.schemas.booking import (
    BOOKING_FILTER_FIELDS,
    BOOKING_OUTPUT_FIELDS,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
)
from tourbook.utils.exceptions import BadRequestError, NotFoundError, ServerError

logger = logging.getLogger(__name__)

# 결제 완료 이벤트 — The only webhook event that creates a booking
CHECKOUT_COMPLETED: str = "checkout.session.completed"


class BookingService:
    """예약 관련 비즈니스 로직을 처리하는 서비스."""

    def _to_response(self, booking: Booking) -> dict[str, Any]:
        return BookingResponse.model_validate(booking).model_dump(mode="json")

    async def _get_or_404(self, db: AsyncSession, booking_id: UUID) -> Booking:
        booking: Booking | None = await booking_repository.get_by_id(db, booking_id)
        if booking is None:
            raise NotFoundError("No booking found with that ID")
        return booking

    async def create_checkout_session(
        self,
        db: AsyncSession,
        user: User,
        tour_id: UUID,
        base_url: str,
    ) -> dict[str, Any]:
        """투어 결제용 Stripe Checkout 세션을 생성합니다.

        Create a Stripe Checkout session for one seat on the tour. The tour
        id travels as client_reference_id and the buyer as customer_email,
        which is what the webhook reads back.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 현재 사용자 (Buyer)
            tour_id: 결제할 투어 ID (Tour UUID)
            base_url: 성공/취소 리다이렉트용 사이트 주소 (Site URL)

        Returns:
            dict[str, Any]: 세션 id와 결제 페이지 url (Session id and url)

        Raises:
            NotFoundError: 투어가 없을 때 (Tour not found)
            ServerError: Stripe 호출 실패 (Stripe API failure)
        """
        tour: Tour | None = await tour_repository.get_by_id(db, tour_id)
        if tour is None:
            raise NotFoundError("No tour found with that ID")

        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create,
                api_key=settings.STRIPE_SECRET_KEY,
                mode="payment",
                payment_method_types=["card"],
                success_url=f"{base_url}my-tours?alert=booking",
                cancel_url=f"{base_url}tour/{tour.slug}",
                customer_email=user.email,
                client_reference_id=str(tour.id),
                line_items=[
                    {
                        "quantity": 1,
                        "price_data": {
                            "currency": "usd",
                            "unit_amount": int(round(tour.price * 100)),
                            "product_data": {
                                "name": f"{tour.name} Tour",
                                "description": tour.summary,
                                "images": [f"{base_url}img/tours/{tour.image_cover}"],
                            },
                        },
                    }
                ],
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session for tour %s failed: %s", tour.id, e)
            raise ServerError("Could not create the checkout session. Try again later!")

        logger.info("Created checkout session %s for %s", session.id, user.email)
        return {"id": session.id, "url": session.url}

    async def handle_webhook(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: str | None,
    ) -> bool:
        """Stripe 웹훅을 검증하고 결제 완료 시 예약을 생성합니다.

        Verify the Stripe signature and, for checkout.session.completed,
        record the booking. Returns True when a booking was created.

        Raises:
            BadRequestError: 서명 검증 실패 또는 잘못된 페이로드
                             (Bad signature or payload)
        """
        try:
            event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Rejected webhook: %s", e)
            raise BadRequestError(f"Webhook error: {e}")

        if event["type"] != CHECKOUT_COMPLETED:
            logger.info("Ignoring webhook event %s", event["type"])
            return False
        return await self.create_booking_checkout(db, event["data"]["object"])

    async def create_booking_checkout(
        self,
        db: AsyncSession,
        session: Any,
    ) -> bool:
        """완료된 결제 세션으로 예약을 생성합니다.

        Create a paid booking from a completed checkout session:
        client_reference_id is the tour, customer_email the user and
        amount_total (in cents) the price.
        """
        try:
            tour_id = UUID(str(session["client_reference_id"]))
        except (KeyError, ValueError):
            logger.warning("Checkout session without a valid tour reference")
            return False

        tour: Tour | None = await tour_repository.get_by_id(db, tour_id)
        user: User | None = await user_repository.get_by_email(db, session["customer_email"] or "")
        if tour is None or user is None:
            logger.warning("Checkout session for unknown tour %s or user %s", tour_id, session["customer_email"])
            return False

        await booking_repository.create(
            db,
            {"tour_id": tour.id, "user_id": user.id, "price": session["amount_total"] / 100},
        )
        logger.info("Booked tour %s for %s", tour.name, user.email)
        return True

    async def get_booked_tours(self, db: AsyncSession, user: User) -> list[Tour]:
        """사용자가 예약한 투어 목록 — Tours shown on the my-tours page."""
        tour_ids: list[UUID] = await booking_repository.get_tour_ids_for_user(db, user.id)
        return await tour_repository.get_many(db, tour_ids)

    async def list_bookings(
        self,
        db: AsyncSession,
        params: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        features = booking_repository.features(
            params,
            filter_fields=BOOKING_FILTER_FIELDS,
            output_fields=BOOKING_OUTPUT_FIELDS,
        )
        bookings = await booking_repository.get_list(db, features)
        return [features.project(self._to_response(b)) for b in bookings]

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> dict[str, Any]:
        return self._to_response(await self._get_or_404(db, booking_id))

    async def create_booking(self, db: AsyncSession, data: BookingCreate) -> dict[str, Any]:
        """예약을 수동으로 생성합니다 (관리자) — Manual booking by staff.

        Raises:
            NotFoundError: 투어 또는 사용자가 없을 때 (Unknown tour or user)
        """
        if await tour_repository.get_by_id(db, data.tour_id) is None:
            raise NotFoundError("No tour found with that ID")
        if await user_repository.get_by_id(db, data.user_id) is None:
            raise NotFoundError("No user found with that ID")

        booking: Booking = await booking_repository.create(db, data.model_dump())
        return await self.get_booking(db, booking.id)

    async def update_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        data: BookingUpdate,
    ) -> dict[str, Any]:
        booking: Booking = await self._get_or_404(db, booking_id)
        await booking_repository.update(db, booking, data.model_dump(exclude_unset=True, exclude_none=True))
        return await self.get_booking(db, booking.id)

    async def delete_booking(self, db: AsyncSession, booking_id: UUID) -> None:
        booking: Booking = await self._get_or_404(db, booking_id)
        await booking_repository.delete(db, booking)


# 싱글턴 인스턴스 — Singleton instance
booking_service: BookingService = BookingService()
