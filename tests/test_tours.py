"""투어 API 테스트 — CRUD, 목록 쿼리, 별칭, 통계, 월간 계획, 지리 검색.

Tour API tests — CRUD with role checks, the list query translator
(filter/sort/fields/page), the top-5-cheap alias, tour-stats,
monthly-plan and the geo endpoints.
"""

import io
import uuid

from httpx import AsyncClient
from PIL import Image

from tests.conftest import auth_header, create_tour

TOURS = "/api/v1/tours"

NEW_TOUR = {
    "name": "The Park Camper",
    "duration": 10,
    "max_group_size": 15,
    "difficulty": "medium",
    "price": 1497,
    "summary": "Breathing in Nature in America's most spectacular National Parks",
    "image_cover": "tour-4-cover.jpg",
    "start_dates": ["2027-08-05T09:00:00", "2028-03-20T09:00:00"],
    "start_location": {"type": "Point", "coordinates": [-118.2437, 34.0522], "description": "Los Angeles"},
    "locations": [
        {"type": "Point", "coordinates": [-119.538329, 37.865101], "description": "Yosemite", "day": 1},
    ],
}


async def _seed_catalogue(db) -> None:
    """가격/난이도가 다른 투어 4개 — Four tours with varied price and difficulty."""
    await create_tour(db, name="The Sea Explorer", difficulty="medium", price=497, duration=7,
                      ratings_average=4.8, ratings_quantity=6)
    await create_tour(db, name="The Snow Adventurer", difficulty="difficult", price=997, duration=4,
                      ratings_average=4.5, ratings_quantity=4)
    await create_tour(db, name="The City Wanderer", difficulty="easy", price=1197, duration=9,
                      ratings_average=4.9, ratings_quantity=8)
    await create_tour(db, name="The Wine Taster", difficulty="easy", price=1997, duration=5,
                      ratings_average=4.2, ratings_quantity=2)


# ===== CRUD =====

class TestTourCreate:
    """투어 생성 테스트."""

    async def test_create_tour_lead_guide(self, client: AsyncClient, lead_guide_token, guide_user):
        res = await client.post(TOURS, json={**NEW_TOUR, "guides": [str(guide_user.id)]},
                                headers=auth_header(lead_guide_token))
        assert res.status_code == 201
        tour = res.json()["data"]["data"]
        assert tour["slug"] == "the-park-camper"
        assert tour["ratings_average"] == 4.5
        assert tour["ratings_quantity"] == 0
        assert tour["duration_weeks"] == 10 / 7
        assert [g["name"] for g in tour["guides"]] == ["Steve Williams"]
        assert "password_hash" not in tour["guides"][0]
        assert "reviews" not in tour

    async def test_create_tour_user_forbidden(self, client: AsyncClient, user_token):
        res = await client.post(TOURS, json=NEW_TOUR, headers=auth_header(user_token))
        assert res.status_code == 403

    async def test_create_tour_guide_forbidden(self, client: AsyncClient, guide_token):
        res = await client.post(TOURS, json=NEW_TOUR, headers=auth_header(guide_token))
        assert res.status_code == 403

    async def test_create_tour_requires_login(self, client: AsyncClient):
        res = await client.post(TOURS, json=NEW_TOUR)
        assert res.status_code == 401

    async def test_create_tour_duplicate_name(self, client: AsyncClient, admin_token, tour):
        res = await client.post(TOURS, json={**NEW_TOUR, "name": "The Forest Hiker"},
                                headers=auth_header(admin_token))
        assert res.status_code == 409
        assert res.json()["message"] == "Duplicate field value: The Forest Hiker. Please use another value!"

    async def test_create_tour_discount_not_below_price(self, client: AsyncClient, admin_token):
        """할인가 >= 가격이면 400."""
        res = await client.post(TOURS, json={**NEW_TOUR, "price_discount": 1497},
                                headers=auth_header(admin_token))
        assert res.status_code == 400
        assert "Discount price" in res.json()["message"]

    async def test_create_tour_bad_difficulty(self, client: AsyncClient, admin_token):
        res = await client.post(TOURS, json={**NEW_TOUR, "difficulty": "extreme"},
                                headers=auth_header(admin_token))
        assert res.status_code == 400
        assert res.json()["message"].startswith("Invalid input data.")

    async def test_create_tour_short_name(self, client: AsyncClient, admin_token):
        """이름 10자 미만 400."""
        res = await client.post(TOURS, json={**NEW_TOUR, "name": "Short"},
                                headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_create_tour_unknown_guide(self, client: AsyncClient, admin_token):
        res = await client.post(TOURS, json={**NEW_TOUR, "guides": [str(uuid.uuid4())]},
                                headers=auth_header(admin_token))
        assert res.status_code == 400


class TestTourReadUpdateDelete:
    """투어 조회/수정/삭제 테스트."""

    async def test_get_tour(self, client: AsyncClient, tour):
        res = await client.get(f"{TOURS}/{tour.id}")
        assert res.status_code == 200
        data = res.json()["data"]["data"]
        assert data["name"] == "The Forest Hiker"
        assert data["reviews"] == []
        assert data["start_location"]["coordinates"] == [-115.570154, 51.178456]

    async def test_get_tour_not_found(self, client: AsyncClient):
        res = await client.get(f"{TOURS}/{uuid.uuid4()}")
        assert res.status_code == 404
        assert res.json()["message"] == "No tour found with that ID"

    async def test_get_tour_malformed_id(self, client: AsyncClient):
        res = await client.get(f"{TOURS}/not-a-uuid")
        assert res.status_code == 400

    async def test_premium_tour_hidden(self, client: AsyncClient, db):
        """premium 투어는 목록과 상세 모두에서 숨김."""
        premium = await create_tour(db, name="The Secret Premium", premium_tour=True)
        res = await client.get(f"{TOURS}/{premium.id}")
        assert res.status_code == 404
        res = await client.get(TOURS)
        assert res.json()["results"] == 0

    async def test_update_tour_json(self, client: AsyncClient, admin_token, tour):
        res = await client.patch(f"{TOURS}/{tour.id}", json={
            "name": "The Forest Hiker Deluxe",
            "price": 499,
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()["data"]["data"]
        assert data["slug"] == "the-forest-hiker-deluxe"
        assert data["price"] == 499

    async def test_update_discount_against_stored_price(self, client: AsyncClient, admin_token, tour):
        """할인가만 보낼 때 저장된 가격과 비교."""
        res = await client.patch(f"{TOURS}/{tour.id}", json={"price_discount": 400},
                                 headers=auth_header(admin_token))
        assert res.status_code == 400
        assert res.json()["message"] == "Discount price (400.0) should be lower than regular price."

        res = await client.patch(f"{TOURS}/{tour.id}", json={"price_discount": 300},
                                 headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["data"]["data"]["price_discount"] == 300

    async def test_update_tour_images(self, client: AsyncClient, admin_token, tour):
        """multipart 커버/갤러리 이미지 업로드."""
        buffer = io.BytesIO()
        Image.new("RGB", (400, 300), "blue").save(buffer, format="PNG")
        png = buffer.getvalue()

        res = await client.patch(
            f"{TOURS}/{tour.id}",
            data={"summary": "Updated summary"},
            files=[
                ("image_cover", ("cover.png", png, "image/png")),
                ("images", ("a.png", png, "image/png")),
                ("images", ("b.png", png, "image/png")),
            ],
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        data = res.json()["data"]["data"]
        assert data["summary"] == "Updated summary"
        assert data["image_cover"].startswith(f"tour-{tour.id}-")
        assert data["image_cover"].endswith("-cover.jpeg")
        assert len(data["images"]) == 2
        assert data["images"][0].endswith("-1.jpeg")

    async def test_update_tour_guide_forbidden(self, client: AsyncClient, guide_token, tour):
        res = await client.patch(f"{TOURS}/{tour.id}", json={"price": 1},
                                 headers=auth_header(guide_token))
        assert res.status_code == 403

    async def test_delete_tour(self, client: AsyncClient, admin_token, tour):
        res = await client.delete(f"{TOURS}/{tour.id}", headers=auth_header(admin_token))
        assert res.status_code == 204
        res = await client.get(f"{TOURS}/{tour.id}")
        assert res.status_code == 404


# ===== List query translator =====

class TestTourList:
    """목록 필터/정렬/필드/페이지 테스트."""

    async def test_default_sort_by_rating(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(TOURS)
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "success"
        assert body["results"] == 4
        assert [t["name"] for t in body["data"]["data"]] == [
            "The City Wanderer", "The Sea Explorer", "The Snow Adventurer", "The Wine Taster",
        ]

    async def test_filter_equality(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?difficulty=easy")
        names = {t["name"] for t in res.json()["data"]["data"]}
        assert names == {"The City Wanderer", "The Wine Taster"}

    async def test_filter_operators(self, client: AsyncClient, db):
        """price[gte], price[lt] 비교 필터."""
        await _seed_catalogue(db)
        res = await client.get(TOURS, params={"price[gte]": "500", "price[lt]": "1500", "sort": "price"})
        assert res.status_code == 200
        assert [t["name"] for t in res.json()["data"]["data"]] == ["The Snow Adventurer", "The City Wanderer"]

    async def test_whitelisted_repeat_becomes_in(self, client: AsyncClient, db):
        """화이트리스트 필드 반복 파라미터는 IN 필터."""
        await _seed_catalogue(db)
        res = await client.get(TOURS, params=[("duration", "7"), ("duration", "9")])
        names = {t["name"] for t in res.json()["data"]["data"]}
        assert names == {"The Sea Explorer", "The City Wanderer"}

    async def test_non_whitelisted_repeat_last_wins(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(TOURS, params=[("name", "The Sea Explorer"), ("name", "The Wine Taster")])
        assert [t["name"] for t in res.json()["data"]["data"]] == ["The Wine Taster"]

    async def test_sort_multiple_fields(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?sort=difficulty,-price")
        assert [t["name"] for t in res.json()["data"]["data"]] == [
            "The Snow Adventurer", "The Wine Taster", "The City Wanderer", "The Sea Explorer",
        ]

    async def test_field_projection(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?fields=name,price")
        for tour in res.json()["data"]["data"]:
            assert set(tour) == {"id", "name", "price"}

    async def test_field_exclusion(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?fields=-summary,-guides")
        tour = res.json()["data"]["data"][0]
        assert "summary" not in tour
        assert "guides" not in tour
        assert "name" in tour

    async def test_pagination(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?sort=price&limit=3&page=2")
        assert [t["name"] for t in res.json()["data"]["data"]] == ["The Wine Taster"]

    async def test_page_beyond_end_is_empty(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}?limit=3&page=5")
        assert res.status_code == 200
        assert res.json()["results"] == 0

    async def test_unknown_filter_field(self, client: AsyncClient, tour):
        res = await client.get(f"{TOURS}?password=x")
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid field: password"

    async def test_unknown_operator(self, client: AsyncClient, tour):
        res = await client.get(TOURS, params={"price[ne]": "5"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid filter operator: ne"

    async def test_bad_filter_value(self, client: AsyncClient, tour):
        res = await client.get(TOURS, params={"price[gte]": "cheap"})
        assert res.status_code == 400


class TestTopCheap:
    """top-5-cheap 별칭 테스트."""

    async def test_top_five_cheap(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        await create_tour(db, name="The Northern Lights", price=1497, ratings_average=4.9)
        await create_tour(db, name="The Star Gazer", price=2997, ratings_average=4.7)
        res = await client.get(f"{TOURS}/top-5-cheap")
        assert res.status_code == 200
        tours = res.json()["data"]["data"]
        assert len(tours) == 5
        assert [t["name"] for t in tours][:2] == ["The City Wanderer", "The Northern Lights"]
        assert set(tours[0]) == {"id", "name", "price", "ratings_average", "summary", "difficulty"}


# ===== Aggregations =====

class TestTourStats:
    """난이도별 통계 테스트."""

    async def test_tour_stats(self, client: AsyncClient, db):
        await _seed_catalogue(db)
        res = await client.get(f"{TOURS}/tour-stats")
        assert res.status_code == 200
        stats = res.json()["data"]["stats"]
        # 평점 4.5 미만(Wine Taster) 제외, 평균 가격 오름차순
        assert [s["difficulty"] for s in stats] == ["MEDIUM", "DIFFICULT", "EASY"]
        easy = stats[2]
        assert easy["num_tours"] == 1
        assert easy["num_ratings"] == 8
        assert easy["avg_price"] == 1197
        assert easy["min_price"] == 1197
        assert easy["max_price"] == 1197


class TestMonthlyPlan:
    """월간 계획 테스트."""

    async def test_monthly_plan(self, client: AsyncClient, db, guide_token):
        await create_tour(db, name="The Forest Hiker", start_dates=[
            "2027-04-25T09:00:00", "2027-07-20T09:00:00", "2028-01-01T09:00:00",
        ])
        await create_tour(db, name="The Sea Explorer", start_dates=["2027-07-05T09:00:00"])
        res = await client.get(f"{TOURS}/monthly-plan/2027", headers=auth_header(guide_token))
        assert res.status_code == 200
        plan = res.json()["data"]["plan"]
        assert plan[0]["month"] == 7
        assert plan[0]["num_tour_starts"] == 2
        assert set(plan[0]["tours"]) == {"The Forest Hiker", "The Sea Explorer"}
        assert plan[1] == {"month": 4, "num_tour_starts": 1, "tours": ["The Forest Hiker"]}
        assert len(plan) == 2

    async def test_monthly_plan_user_forbidden(self, client: AsyncClient, user_token):
        res = await client.get(f"{TOURS}/monthly-plan/2027", headers=auth_header(user_token))
        assert res.status_code == 403


# ===== Geo =====

class TestGeo:
    """지리 검색 테스트."""

    async def test_tours_within(self, client: AsyncClient, db):
        await create_tour(db)  # Banff
        await create_tour(db, name="The Sea Explorer", start_location={
            "type": "Point", "coordinates": [-80.185942, 25.774772],
        })  # Miami
        res = await client.get(f"{TOURS}/tours-within/200/center/51.0447,-114.0719/unit/mi")
        assert res.status_code == 200
        assert [t["name"] for t in res.json()["data"]["data"]] == ["The Forest Hiker"]

        res = await client.get(f"{TOURS}/tours-within/5000/center/51.0447,-114.0719/unit/km")
        assert res.json()["results"] == 2

    async def test_distances_nearest_first(self, client: AsyncClient, db):
        await create_tour(db)
        await create_tour(db, name="The Sea Explorer", start_location={
            "type": "Point", "coordinates": [-80.185942, 25.774772],
        })
        await create_tour(db, name="The Nowhere Tour", start_location=None)
        res = await client.get(f"{TOURS}/distances/25.7617,-80.1918/unit/km")
        assert res.status_code == 200
        rows = res.json()["data"]["data"]
        assert [r["name"] for r in rows] == ["The Sea Explorer", "The Forest Hiker"]
        assert rows[0]["distance"] < 5
        assert rows[1]["distance"] > 3000

    async def test_bad_latlng(self, client: AsyncClient):
        res = await client.get(f"{TOURS}/distances/51.0447/unit/km")
        assert res.status_code == 400
        assert res.json()["message"] == "Please provide latitude and longitude in the format lat,lng."

    async def test_bad_unit(self, client: AsyncClient):
        res = await client.get(f"{TOURS}/distances/51.0,-114.0/unit/yd")
        assert res.status_code == 400
