"""예약 API 테스트 — Stripe 결제 세션, 웹훅, 관리자 예약 CRUD.

Booking API tests — Checkout session creation (Stripe mocked), the
checkout.session.completed webhook, and staff booking management.
"""

import uuid
from types import SimpleNamespace
from typing import Any

import pytest
import stripe
from httpx import AsyncClient
from sqlalchemy import func, select

from tests.conftest import auth_header
from tourbook.models.booking import Booking

BOOKINGS = "/api/v1/bookings"
WEBHOOK = "/webhook-checkout"


@pytest.fixture
def stripe_calls(monkeypatch) -> list[dict[str, Any]]:
    """stripe.checkout.Session.create 대체 — Records the call, returns a fake session."""
    calls: list[dict[str, Any]] = []

    def _create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")

    monkeypatch.setattr(stripe.checkout.Session, "create", _create)
    return calls


def completed_event(tour_id: str, email: str, amount_total: int = 39700) -> dict[str, Any]:
    return {
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "client_reference_id": tour_id,
                "customer_email": email,
                "amount_total": amount_total,
            }
        },
    }


async def _booking_count(db) -> int:
    return (await db.execute(select(func.count(Booking.id)))).scalar()


# ===== Checkout session =====

class TestCheckoutSession:
    """결제 세션 생성 테스트."""

    async def test_create_session(self, client: AsyncClient, tour, regular_user, user_token, stripe_calls):
        res = await client.get(f"{BOOKINGS}/checkout-session/{tour.id}", headers=auth_header(user_token))
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "success"
        assert body["session"] == {
            "id": "cs_test_123",
            "url": "https://checkout.stripe.com/c/pay/cs_test_123",
        }

        call = stripe_calls[0]
        assert call["mode"] == "payment"
        assert call["customer_email"] == "laura@test.io"
        assert call["client_reference_id"] == str(tour.id)
        assert call["success_url"] == "http://test/my-tours?alert=booking"
        assert call["cancel_url"] == "http://test/tour/the-forest-hiker"
        price_data = call["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 39700
        assert price_data["product_data"]["name"] == "The Forest Hiker Tour"

    async def test_unknown_tour(self, client: AsyncClient, user_token, stripe_calls):
        res = await client.get(f"{BOOKINGS}/checkout-session/{uuid.uuid4()}", headers=auth_header(user_token))
        assert res.status_code == 404
        assert stripe_calls == []

    async def test_requires_login(self, client: AsyncClient, tour, stripe_calls):
        res = await client.get(f"{BOOKINGS}/checkout-session/{tour.id}")
        assert res.status_code == 401

    async def test_stripe_failure(self, client: AsyncClient, monkeypatch, tour, user_token):
        """Stripe 오류는 500 운영 오류로 변환."""
        def _fail(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", _fail)
        res = await client.get(f"{BOOKINGS}/checkout-session/{tour.id}", headers=auth_header(user_token))
        assert res.status_code == 500
        assert res.json()["message"] == "Could not create the checkout session. Try again later!"


# ===== Webhook =====

class TestWebhook:
    """Stripe 웹훅 테스트."""

    async def test_completed_checkout_creates_booking(
        self, client: AsyncClient, monkeypatch, db, tour, regular_user, user_token
    ):
        received: list[tuple] = []

        def _construct(payload, signature, secret):
            received.append((payload, signature, secret))
            return completed_event(str(tour.id), "laura@test.io")

        monkeypatch.setattr(stripe.Webhook, "construct_event", _construct)

        res = await client.post(WEBHOOK, content=b'{"id": "evt_1"}', headers={"Stripe-Signature": "t=1,v1=abc"})
        assert res.status_code == 200
        assert res.json() == {"received": True}
        assert received == [(b'{"id": "evt_1"}', "t=1,v1=abc", "whsec_test_dummy")]

        assert await _booking_count(db) == 1
        booking = (await db.execute(select(Booking))).scalar_one()
        assert booking.price == 397
        assert booking.paid is True
        assert booking.user_id == regular_user.id

        # my-tours 페이지에 예약한 투어 표시
        client.cookies.set("jwt", user_token)
        res = await client.get("/my-tours")
        assert res.status_code == 200
        assert "The Forest Hiker" in res.text

    async def test_other_events_ignored(self, client: AsyncClient, monkeypatch, db, tour):
        monkeypatch.setattr(
            stripe.Webhook, "construct_event",
            lambda payload, signature, secret: {"type": "payment_intent.created", "data": {"object": {}}},
        )
        res = await client.post(WEBHOOK, content=b"{}", headers={"Stripe-Signature": "sig"})
        assert res.status_code == 200
        assert await _booking_count(db) == 0

    async def test_unknown_customer_ignored(self, client: AsyncClient, monkeypatch, db, tour):
        monkeypatch.setattr(
            stripe.Webhook, "construct_event",
            lambda payload, signature, secret: completed_event(str(tour.id), "ghost@test.io"),
        )
        res = await client.post(WEBHOOK, content=b"{}", headers={"Stripe-Signature": "sig"})
        assert res.status_code == 200
        assert await _booking_count(db) == 0

    async def test_bad_signature(self, client: AsyncClient, monkeypatch):
        """서명 검증 실패 시 400 JSON."""
        def _reject(payload, signature, secret):
            raise stripe.SignatureVerificationError("No signatures found matching the expected signature", signature)

        monkeypatch.setattr(stripe.Webhook, "construct_event", _reject)
        res = await client.post(WEBHOOK, content=b"{}", headers={"Stripe-Signature": "forged"})
        assert res.status_code == 400
        assert res.json()["message"].startswith("Webhook error: ")


# ===== Staff booking CRUD =====

class TestBookingCrud:
    """관리자 예약 관리 테스트."""

    async def test_create_and_list(self, client: AsyncClient, tour, regular_user, admin_token):
        res = await client.post(BOOKINGS, json={
            "tour_id": str(tour.id),
            "user_id": str(regular_user.id),
            "price": 397,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        booking = res.json()["data"]["data"]
        assert booking["tour"]["name"] == "The Forest Hiker"
        assert booking["user"]["email"] == "laura@test.io"
        assert booking["paid"] is True

        res = await client.get(BOOKINGS, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["results"] == 1

    async def test_create_unknown_user(self, client: AsyncClient, tour, admin_token):
        res = await client.post(BOOKINGS, json={
            "tour_id": str(tour.id),
            "user_id": str(uuid.uuid4()),
            "price": 397,
        }, headers=auth_header(admin_token))
        assert res.status_code == 404

    async def test_update_and_delete(self, client: AsyncClient, tour, regular_user, lead_guide_token):
        res = await client.post(BOOKINGS, json={
            "tour_id": str(tour.id),
            "user_id": str(regular_user.id),
            "price": 397,
        }, headers=auth_header(lead_guide_token))
        booking_id = res.json()["data"]["data"]["id"]

        res = await client.patch(f"{BOOKINGS}/{booking_id}", json={"paid": False},
                                 headers=auth_header(lead_guide_token))
        assert res.status_code == 200
        assert res.json()["data"]["data"]["paid"] is False

        res = await client.delete(f"{BOOKINGS}/{booking_id}", headers=auth_header(lead_guide_token))
        assert res.status_code == 204
        res = await client.get(f"{BOOKINGS}/{booking_id}", headers=auth_header(lead_guide_token))
        assert res.status_code == 404

    async def test_user_forbidden(self, client: AsyncClient, user_token):
        res = await client.get(BOOKINGS, headers=auth_header(user_token))
        assert res.status_code == 403

    async def test_guide_forbidden(self, client: AsyncClient, guide_token):
        res = await client.get(BOOKINGS, headers=auth_header(guide_token))
        assert res.status_code == 403
