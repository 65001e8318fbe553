"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.

JWT Payload Structure:
    {
        "id": "user_uuid",   # 사용자 ID (User identifier)
        "iat": 1234567890,   # 발급 시각 UNIX timestamp (Issued at)
        "exp": 1234567890    # 만료 시각 UNIX timestamp (Expiration)
    }

iat는 비밀번호 변경 이후 발급된 토큰인지 판별하는 데 사용됩니다.
(iat is compared against User.password_changed_at.)
"""

from datetime import timedelta
from typing import Any

import jwt

from tourbook.config import settings
from tourbook.utils.dates import utcnow


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Sign a token for the given user. Expires after JWT_EXPIRES_IN_DAYS
    unless expires_delta is given.

    Args:
        user_id: 사용자 UUID 문자열 (User UUID as string)
        expires_delta: 만료 기간 재정의 (Optional TTL override)

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)
    """
    now = utcnow()
    if expires_delta is None:
        expires_delta = timedelta(days=settings.JWT_EXPIRES_IN_DAYS)
    to_encode: dict[str, Any] = {
        "id": user_id,
        "iat": int(now.timestamp()),
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Decode and verify a JWT token string.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
