"""쿼리 문자열 → SQLAlchemy 쿼리 변환 유틸리티 모듈.

Query-string to SQLAlchemy query translator for list endpoints.
Applies, in order: filter -> sort -> limit_fields -> paginate.

Query conventions:
    ?difficulty=easy                 등치 필터 (equality)
    ?price[gte]=500&price[lt]=1500   비교 필터 — gte, gt, lte, lt (comparison)
    ?sort=-ratings_average,price     정렬, "-" 접두사는 내림차순 (descending)
    ?fields=name,price               응답 필드 선택 (projection, id always kept)
    ?page=2&limit=10                 페이지네이션 (1-based, limit <= 100)

Repeated parameters (?difficulty=easy&difficulty=medium) become an IN filter
only for whitelisted fields; for any other field the last value wins.
"""

import operator
import re
import uuid
from collections.abc import Callable, Collection, Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import Select

from tourbook.utils.exceptions import BadRequestError

# 필터에서 제외되는 예약 파라미터 — Parameters that never become filters
RESERVED_PARAMS: frozenset[str] = frozenset({"page", "sort", "limit", "fields"})

DEFAULT_PAGE: int = 1
DEFAULT_LIMIT: int = 100
MAX_LIMIT: int = 100

OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "gte": operator.ge,
    "gt": operator.gt,
    "lte": operator.le,
    "lt": operator.lt,
}

_FILTER_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[a-z]+)\])?$")


def _positive_int(raw: str | None, default: int) -> int:
    """양의 정수 파싱, 실패 시 기본값 — Invalid or non-positive values fall back."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _coerce(value: str, python_type: type) -> Any:
    """문자열 값을 컬럼 타입으로 변환합니다 — Coerce a raw value to the column type."""
    if python_type is bool:
        lowered = value.lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValueError(value)
    if python_type is datetime:
        return datetime.fromisoformat(value)
    if python_type is uuid.UUID:
        return uuid.UUID(value)
    return python_type(value)


class APIFeatures:
    """목록 조회용 쿼리 빌더.

    Builds a filtered, sorted, paginated Select from request query parameters.

    Attributes:
        query: 누적된 SELECT 쿼리 (Select being built)
        fields: 선택된 응답 필드 또는 None (Projected fields, None = all)
        excluded: 제외할 응답 필드 (Fields removed from the output)
        page: 현재 페이지 (Current page, 1-based)
        limit: 페이지당 항목 수 (Items per page)

    Usage:
        features = APIFeatures(Tour, select(Tour), request.query_params.multi_items(),
                               filter_fields=TOUR_FILTER_FIELDS, output_fields=TOUR_FIELDS,
                               default_sort="-ratings_average")
        query = features.filter().sort().limit_fields().paginate().query
    """

    def __init__(
        self,
        model: type,
        query: Select,
        params: Iterable[tuple[str, str]],
        *,
        filter_fields: Collection[str],
        output_fields: Collection[str] = (),
        default_sort: str = "-created_at",
        whitelist: Collection[str] = (),
    ) -> None:
        self.model = model
        self.query: Select = query
        self.filter_fields = filter_fields
        self.output_fields = output_fields
        self.default_sort: str = default_sort
        self.whitelist = whitelist
        self.fields: list[str] | None = None
        self.excluded: list[str] = []
        self.page: int = DEFAULT_PAGE
        self.limit: int = DEFAULT_LIMIT

        # 같은 키의 값들을 순서대로 모음 — Group repeated keys, keeping order
        self._params: dict[str, list[str]] = {}
        for key, value in params:
            self._params.setdefault(key, []).append(value)

    def _last(self, key: str) -> str | None:
        values = self._params.get(key)
        return values[-1] if values else None

    def _column(self, field: str) -> Any:
        if field not in self.filter_fields:
            raise BadRequestError(f"Invalid field: {field}")
        return getattr(self.model, field)

    def _python_value(self, field: str, column: Any, raw: str) -> Any:
        try:
            return _coerce(raw, column.type.python_type)
        except (ValueError, TypeError):
            raise BadRequestError(f"Invalid value for {field}: {raw}")

    def filter(self) -> "APIFeatures":
        """예약 파라미터를 제외한 모든 파라미터를 필터로 적용합니다."""
        for key, values in self._params.items():
            if key in RESERVED_PARAMS:
                continue
            match = _FILTER_KEY.match(key)
            if match is None:
                raise BadRequestError(f"Invalid filter: {key}")
            field: str = match.group("field")
            op: str | None = match.group("op")
            column = self._column(field)

            if op is None:
                if len(values) > 1 and field in self.whitelist:
                    coerced = [self._python_value(field, column, v) for v in values]
                    self.query = self.query.where(column.in_(coerced))
                else:
                    self.query = self.query.where(column == self._python_value(field, column, values[-1]))
                continue

            compare = OPERATORS.get(op)
            if compare is None:
                raise BadRequestError(f"Invalid filter operator: {op}")
            self.query = self.query.where(compare(column, self._python_value(field, column, values[-1])))
        return self

    def sort(self) -> "APIFeatures":
        """정렬 적용 — "a,-b" 형식, 미지정 시 리소스 기본 정렬."""
        sort_by: str = self._last("sort") or self.default_sort
        clauses = []
        for part in sort_by.split(","):
            part = part.strip()
            if not part:
                continue
            descending = part.startswith("-")
            column = self._column(part.lstrip("-"))
            clauses.append(column.desc() if descending else column.asc())
        # 페이지 간 순서 고정 — Stable order across pages
        clauses.append(self.model.id.asc())
        self.query = self.query.order_by(*clauses)
        return self

    def limit_fields(self) -> "APIFeatures":
        """응답 필드 선택 — "a,b"는 포함, "-a,-b"는 제외."""
        raw: str | None = self._last("fields")
        if not raw:
            return self
        requested = [f.strip() for f in raw.split(",") if f.strip()]
        for name in requested:
            if name.lstrip("-") not in self.output_fields:
                raise BadRequestError(f"Invalid field: {name.lstrip('-')}")
        if requested and all(name.startswith("-") for name in requested):
            self.excluded = [name[1:] for name in requested]
        else:
            self.fields = [name for name in requested if not name.startswith("-")]
        return self

    def paginate(self) -> "APIFeatures":
        """페이지네이션 적용 — OFFSET/LIMIT."""
        self.page = _positive_int(self._last("page"), DEFAULT_PAGE)
        self.limit = min(_positive_int(self._last("limit"), DEFAULT_LIMIT), MAX_LIMIT)
        offset: int = (self.page - 1) * self.limit
        self.query = self.query.offset(offset).limit(self.limit)
        return self

    def project(self, document: dict[str, Any]) -> dict[str, Any]:
        """선택된 필드만 남깁니다 — Apply the field projection to one document."""
        if self.fields is not None:
            keep = set(self.fields) | {"id"}
            return {k: v for k, v in document.items() if k in keep}
        if self.excluded:
            return {k: v for k, v in document.items() if k not in self.excluded}
        return document
