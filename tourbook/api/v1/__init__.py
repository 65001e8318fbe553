"""API v1 라우터 패키지 — 모든 JSON 엔드포인트 통합.

API v1 Router package — Aggregates every JSON endpoint into a single
router mounted at /api/v1.

Included routers:
    - tours: 투어 CRUD, 통계, 지리 검색 (Tours, stats, geo)
    - users: 인증 및 사용자 관리 (Auth and user management)
    - reviews: 리뷰, /tours/{tour_id}/reviews 중첩 포함 (Reviews, also nested)
    - bookings: 결제 세션 및 예약 관리 (Checkout and bookings)
"""

from fastapi import APIRouter

from tourbook.api.v1.bookings import router as bookings_router
from tourbook.api.v1.reviews import router as reviews_router
from tourbook.api.v1.tours import router as tours_router
from tourbook.api.v1.users import router as users_router

api_router: APIRouter = APIRouter()

# 리뷰 중첩 라우트는 /tours/{tour_id}보다 먼저 등록
# Nested reviews are registered before /tours/{tour_id} routes
api_router.include_router(reviews_router, prefix="/tours/{tour_id}/reviews", tags=["Reviews"])
api_router.include_router(tours_router, prefix="/tours", tags=["Tours"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(reviews_router, prefix="/reviews", tags=["Reviews"])
api_router.include_router(bookings_router, prefix="/bookings", tags=["Bookings"])
