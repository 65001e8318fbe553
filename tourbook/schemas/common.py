"""공통 응답 봉투(envelope) 스키마 정의.

Common response envelope schemas shared by every JSON endpoint.

    목록 (List):     {"status": "success", "results": 2, "data": {"data": [...]}}
    단건 (Document): {"status": "success", "data": {"data": {...}}}
"""

from typing import Any

from pydantic import BaseModel


class StatusResponse(BaseModel):
    """상태만 담은 응답 — Bare status response (logout, forgot password)."""

    status: str = "success"
    message: str | None = None


class DocumentResponse(BaseModel):
    """단건 응답 봉투 — Single-document envelope."""

    status: str = "success"
    data: dict[str, Any]


class ListResponse(BaseModel):
    """목록 응답 봉투 — List envelope with result count."""

    status: str = "success"
    results: int
    data: dict[str, list[Any]]


def document(doc: Any, key: str = "data") -> DocumentResponse:
    return DocumentResponse(data={key: doc})


def listing(docs: list[Any], key: str = "data") -> ListResponse:
    return ListResponse(results=len(docs), data={key: docs})
