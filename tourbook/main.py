"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 에러 핸들러 및 라우터 등록.

FastAPI application entry point — Middleware, error handlers and router
registration. Errors are rendered as JSON under /api and for the payment
webhook, and as an HTML page everywhere else.
"""

import logging
import traceback

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tourbook.api.views import render_error
from tourbook.config import settings
from tourbook.middleware.request_logging import RequestLoggingMiddleware
from tourbook.services.image_service import image_service
from tourbook.utils.exceptions import AppError

# 로깅 설정 — Root logging configuration
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 요청 로깅 미들웨어 — 가장 바깥에서 모든 요청을 캡처
# (Registered first so it wraps every other middleware)
app.add_middleware(RequestLoggingMiddleware)

# 응답 압축 — Compress text responses
app.add_middleware(GZipMiddleware, minimum_size=1000)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# 에러 핸들러 — Error handlers
# ---------------------------------------------------------------------------
def _is_api(request: Request) -> bool:
    return request.url.path.startswith(("/api", "/webhook"))


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    exc: Exception,
    operational: bool = True,
) -> Response:
    """에러 응답 생성 — JSON for the API, an HTML page for rendered views.

    Development responses carry the exception and traceback. In production
    only operational errors expose their message.
    """
    if settings.is_production and not operational:
        message = "Something went very wrong!" if _is_api(request) else "Please try again later."

    if not _is_api(request):
        return render_error(message, status_code)

    body: dict = {
        "status": "fail" if 400 <= status_code < 500 else "error",
        "message": message,
    }
    if not settings.is_production:
        body["error"] = repr(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _validation_message(errors: list[dict]) -> str:
    messages = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "Invalid input data. " + ". ".join(messages)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """HTTP 예외 처리 — AppError 및 라우팅 404/405."""
    if exc.status_code == 404 and not isinstance(exc, AppError):
        return _error_response(request, 404, f"Can't find {request.url.path} on this server!", exc)
    return _error_response(request, exc.status_code, str(exc.detail), exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    return _error_response(request, 400, _validation_message(list(exc.errors())), exc)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError) -> Response:
    """서비스 계층의 스키마 검증 실패 — Schemas validated inside services."""
    return _error_response(request, 400, _validation_message(exc.errors()), exc)


@app.exception_handler(IntegrityError)
async def integrity_handler(request: Request, exc: IntegrityError) -> Response:
    """고유 제약 위반 — Races past the service-level uniqueness checks."""
    return _error_response(request, 400, "Duplicate field value. Please use another value!", exc)


@app.exception_handler(jwt.PyJWTError)
async def jwt_handler(request: Request, exc: jwt.PyJWTError) -> Response:
    if isinstance(exc, jwt.ExpiredSignatureError):
        return _error_response(request, 401, "Your token has expired! Please log in again.", exc)
    return _error_response(request, 401, "Invalid token. Please log in again!", exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """프로그래밍 오류 — Logged, details hidden in production."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, 500, str(exc) or "Something went very wrong!", exc, operational=False)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 정적 파일 — 업로드 이미지 (/img/users, /img/tours)
# ---------------------------------------------------------------------------
image_service.ensure_dirs()
app.mount("/img", StaticFiles(directory=image_service.img_dir), name="img")


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from tourbook.api.v1 import api_router  # noqa: E402
from tourbook.api.views import router as views_router  # noqa: E402
from tourbook.api.webhook import router as webhook_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
app.include_router(webhook_router, tags=["Webhook"])
app.include_router(views_router, tags=["Views"])
