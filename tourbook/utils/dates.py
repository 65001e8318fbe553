"""UTC 시각 유틸리티.

SQLite는 timezone 정보를 저장하지 않으므로 읽어온 naive datetime을
UTC로 간주해 비교합니다. (SQLite drops tzinfo; naive values are treated as UTC.)
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """naive datetime에 UTC tzinfo를 부여합니다 — Attach UTC to naive datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
