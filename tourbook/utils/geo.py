"""지리 계산 유틸리티 — 구면 거리 및 좌표 파싱.

Geo utilities — Great-circle distance and "lat,lng" parsing for the
tours-within and distances endpoints. Coordinates follow GeoJSON order
([lng, lat]) when read from a tour's start_location.
"""

import math
from typing import Any

from tourbook.utils.exceptions import BadRequestError

# 지구 반지름 — Earth radius per unit
EARTH_RADIUS: dict[str, float] = {"mi": 3963.2, "km": 6378.1}


def parse_latlng(latlng: str) -> tuple[float, float]:
    """"lat,lng" 문자열을 (lat, lng)로 변환합니다.

    Raises:
        BadRequestError: 형식이 잘못되었거나 범위를 벗어난 경우
    """
    parts = latlng.split(",")
    try:
        lat, lng = (float(p) for p in parts)
    except ValueError:
        raise BadRequestError("Please provide latitude and longitude in the format lat,lng.")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise BadRequestError("Please provide latitude and longitude in the format lat,lng.")
    return lat, lng


def check_unit(unit: str) -> str:
    if unit not in EARTH_RADIUS:
        raise BadRequestError("Unit must be either 'mi' or 'km'.")
    return unit


def haversine(lat1: float, lng1: float, lat2: float, lng2: float, unit: str = "km") -> float:
    """두 지점 사이의 대원 거리 — Great-circle distance in the given unit."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS[unit] * math.asin(math.sqrt(a))


def point_coordinates(location: dict[str, Any] | None) -> tuple[float, float] | None:
    """GeoJSON Point에서 (lat, lng) 추출 — None when missing or malformed."""
    if not location:
        return None
    coordinates = location.get("coordinates") or []
    if len(coordinates) != 2:
        return None
    lng, lat = coordinates
    return float(lat), float(lng)
