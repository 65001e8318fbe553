"""요청 로깅 미들웨어 — Axiom 전송 및 개발 환경 콘솔 로그.

Request logging middleware.
Every request is timed. In development a one-line summary
(METHOD path status duration) goes to the stdlib logger. When Axiom is
configured, a structured event (endpoint, method, params, masked body,
status code, error message) is also shipped to the Axiom dataset.
Sensitive fields (password, token, secret) are masked.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tourbook.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies and params
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|credential|jwt)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}
_SKIP_PREFIXES = ("/img/",)


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive keys."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(str(k)) else _mask(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > 2000:
        return data[:2000] + "...(truncated)"
    return data


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 요청의 처리 시간과 결과를 기록하는 미들웨어.

    Middleware logging method, path, status and duration of every request,
    to the console in development and to Axiom when configured.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def _read_body(self, request: Request) -> Any:
        if request.method not in ("POST", "PUT", "PATCH"):
            return None
        if not request.headers.get("content-type", "").startswith("application/json"):
            return "(non-json body)"
        body_bytes = await request.body()
        if not body_bytes:
            return None
        try:
            return _mask(json.loads(body_bytes))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "(invalid json body)"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # 제외 경로 스킵 — Skip excluded paths
        if path in _SKIP_PATHS or path.startswith(_SKIP_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        request_body: Any = await self._read_body(request) if self._client else None

        error_detail: str | None = None
        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 에러 응답시 본문에서 메시지 추출 — Pull the message out of error responses
            if status_code >= 400 and self._client and response.media_type == "application/json":
                resp_body = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                try:
                    error_detail = str(json.loads(resp_body).get("message", ""))[:500]
                except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
                    error_detail = resp_body.decode("utf-8", errors="replace")[:500]

                # 소비한 body를 다시 응답으로 반환 — Re-wrap consumed body
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            if not settings.is_production:
                logger.info("%s %s %d %.2fms", request.method, path, status_code, duration_ms)
            if self._client:
                self._ship(request, path, status_code, duration_ms, request_body, error_detail)

        return response

    def _ship(
        self,
        request: Request,
        path: str,
        status_code: int,
        duration_ms: float,
        request_body: Any,
        error_detail: str | None,
    ) -> None:
        """Axiom 이벤트 전송 — Build and ingest one event."""
        log_event: dict[str, Any] = {
            "method": request.method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "environment": settings.ENVIRONMENT,
        }
        if request.query_params:
            log_event["query_params"] = _mask(dict(request.query_params))
        if request.path_params:
            log_event["path_params"] = _mask(dict(request.path_params))
        if request_body is not None:
            log_event["request_body"] = request_body
        if error_detail:
            log_event["error"] = error_detail

        try:
            self._client.ingest_events(self._dataset, [log_event])
        except Exception:
            # 로깅 실패가 요청 처리에 영향주지 않음 — Log shipping never fails a request
            logger.warning("Axiom ingest failed for %s %s", request.method, path, exc_info=True)
