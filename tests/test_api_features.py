"""쿼리 변환기 및 지리 유틸리티 단위 테스트.

Unit tests for APIFeatures (query string -> Select) and the geo helpers.
Queries run against the in-memory test database.
"""

import pytest
import pytest_asyncio
from sqlalchemy import select

from tests.conftest import create_tour
from tourbook.models.tour import Tour
from tourbook.schemas.tour import TOUR_FILTER_FIELDS, TOUR_OUTPUT_FIELDS, TOUR_WHITELIST
from tourbook.utils.api_features import MAX_LIMIT, APIFeatures
from tourbook.utils.exceptions import BadRequestError
from tourbook.utils.geo import check_unit, haversine, parse_latlng, point_coordinates


def features(params: list[tuple[str, str]]) -> APIFeatures:
    return APIFeatures(
        Tour,
        select(Tour),
        params,
        filter_fields=TOUR_FILTER_FIELDS,
        output_fields=TOUR_OUTPUT_FIELDS,
        default_sort="price",
        whitelist=TOUR_WHITELIST,
    )


async def names(db, f: APIFeatures) -> list[str]:
    result = await db.execute(f.query)
    return [t.name for t in result.scalars().all()]


@pytest_asyncio.fixture
async def three_tours(db):
    await create_tour(db, name="The Forest Hiker", price=397, duration=5, difficulty="easy")
    await create_tour(db, name="The Sea Explorer", price=497, duration=7, difficulty="medium")
    await create_tour(db, name="The Snow Adventurer", price=997, duration=4, difficulty="difficult")


class TestFilter:
    """필터 변환 테스트."""

    async def test_equality_and_operator(self, db, three_tours):
        f = features([("price[gte]", "400"), ("difficulty", "medium")]).filter().sort()
        assert await names(db, f) == ["The Sea Explorer"]

    async def test_reserved_params_skipped(self, db, three_tours):
        f = features([("page", "1"), ("limit", "10"), ("sort", "price"), ("fields", "name")]).filter().sort()
        assert len(await names(db, f)) == 3

    async def test_whitelisted_repeat_is_in(self, db, three_tours):
        f = features([("duration", "5"), ("duration", "4")]).filter().sort()
        assert await names(db, f) == ["The Forest Hiker", "The Snow Adventurer"]

    async def test_other_repeat_last_wins(self, db, three_tours):
        f = features([("name", "The Forest Hiker"), ("name", "The Sea Explorer")]).filter()
        assert await names(db, f) == ["The Sea Explorer"]

    def test_unknown_field(self):
        with pytest.raises(BadRequestError) as exc:
            features([("secret", "1")]).filter()
        assert exc.value.detail == "Invalid field: secret"

    def test_unknown_operator(self):
        with pytest.raises(BadRequestError) as exc:
            features([("price[ne]", "1")]).filter()
        assert exc.value.detail == "Invalid filter operator: ne"

    def test_bad_value(self):
        with pytest.raises(BadRequestError) as exc:
            features([("duration", "five")]).filter()
        assert exc.value.detail == "Invalid value for duration: five"

    def test_malformed_key(self):
        with pytest.raises(BadRequestError):
            features([("price[gte", "1")]).filter()


class TestSort:
    """정렬 테스트."""

    async def test_default_sort(self, db, three_tours):
        f = features([]).sort()
        assert await names(db, f) == ["The Forest Hiker", "The Sea Explorer", "The Snow Adventurer"]

    async def test_descending(self, db, three_tours):
        f = features([("sort", "-duration")]).sort()
        assert await names(db, f) == ["The Sea Explorer", "The Forest Hiker", "The Snow Adventurer"]

    def test_unknown_sort_field(self):
        with pytest.raises(BadRequestError):
            features([("sort", "-password_hash")]).sort()


class TestPaginateAndProject:
    """페이지네이션 및 필드 선택 테스트."""

    async def test_second_page(self, db, three_tours):
        f = features([("page", "2"), ("limit", "2")]).sort().paginate()
        assert await names(db, f) == ["The Snow Adventurer"]
        assert (f.page, f.limit) == (2, 2)

    def test_limit_clamped(self):
        f = features([("limit", "5000")]).paginate()
        assert f.limit == MAX_LIMIT

    @pytest.mark.parametrize("raw", ["0", "-3", "abc"])
    def test_invalid_page_falls_back(self, raw):
        f = features([("page", raw)]).paginate()
        assert f.page == 1

    def test_projection_keeps_id(self):
        f = features([("fields", "name,price")]).limit_fields()
        doc = {"id": "x", "name": "The Forest Hiker", "price": 397, "summary": "..."}
        assert f.project(doc) == {"id": "x", "name": "The Forest Hiker", "price": 397}

    def test_exclusion(self):
        f = features([("fields", "-summary,-price")]).limit_fields()
        doc = {"id": "x", "name": "The Forest Hiker", "price": 397, "summary": "..."}
        assert f.project(doc) == {"id": "x", "name": "The Forest Hiker"}

    def test_no_projection(self):
        doc = {"id": "x", "name": "The Forest Hiker"}
        assert features([]).limit_fields().project(doc) == doc

    def test_unknown_output_field(self):
        with pytest.raises(BadRequestError):
            features([("fields", "name,password_hash")]).limit_fields()


class TestGeo:
    """지리 유틸리티 테스트."""

    def test_parse_latlng(self):
        assert parse_latlng("51.0447,-114.0719") == (51.0447, -114.0719)

    @pytest.mark.parametrize("raw", ["51.0447", "a,b", "91,0", "0,181", "1,2,3"])
    def test_parse_latlng_invalid(self, raw):
        with pytest.raises(BadRequestError):
            parse_latlng(raw)

    def test_check_unit(self):
        assert check_unit("mi") == "mi"
        with pytest.raises(BadRequestError):
            check_unit("ft")

    def test_haversine(self):
        # Calgary -> Banff
        km = haversine(51.0447, -114.0719, 51.178456, -115.570154, "km")
        assert 100 < km < 110
        miles = haversine(51.0447, -114.0719, 51.178456, -115.570154, "mi")
        assert miles == pytest.approx(km * 3963.2 / 6378.1)
        assert haversine(10, 10, 10, 10) == 0

    def test_point_coordinates(self):
        assert point_coordinates({"type": "Point", "coordinates": [-115.57, 51.17]}) == (51.17, -115.57)
        assert point_coordinates(None) is None
        assert point_coordinates({"type": "Point", "coordinates": []}) is None
