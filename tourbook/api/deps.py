"""FastAPI 의존성 주입 모듈 — 인증, 권한 검사 및 요청 본문 파싱.

FastAPI dependency injection module — Authentication, authorization and
body parsing.

Authentication Flow (get_current_user):
    1. Authorization: Bearer <token> 헤더 또는 jwt 쿠키에서 토큰 추출
       (Token from the Bearer header, falling back to the jwt cookie)
    2. auth_service.authenticate()가 서명/만료를 검증하고 사용자를 조회
       (Signature and expiry verified, owner looked up)
    3. 토큰 발급 이후 비밀번호가 변경되었으면 401
       (401 if the password changed after the token was issued)

Authorization Flow (restrict_to):
    1. get_current_user로 사용자 인증 (User authenticated first)
    2. 사용자 역할이 허용 목록에 없으면 403 Forbidden
       (403 unless the user's role is one of the allowed roles)
"""

import json
from typing import Annotated, Any, Awaitable, Callable

from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from tourbook.database import get_db
from tourbook.models.user import User
from tourbook.services.auth_service import auth_service
from tourbook.utils.exceptions import BadRequestError, ForbiddenError, UnauthorizedError

# HTTP Bearer 토큰 추출기 — 없으면 쿠키로 대체하므로 auto_error 비활성화
# (Missing header is not an error; the jwt cookie is tried next)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    jwt_cookie: Annotated[str | None, Cookie(alias="jwt")] = None,
) -> User:
    """요청의 JWT에서 현재 인증된 사용자를 추출합니다.

    Resolve the logged-in user from the Bearer header or the jwt cookie.

    Args:
        db: 비동기 DB 세션 (Async database session)
        credentials: Bearer 토큰 자격 증명 (Bearer credentials, optional)
        jwt_cookie: jwt 쿠키 값 (Session cookie, optional)

    Returns:
        User: 인증된 사용자 ORM 인스턴스 (Authenticated user ORM instance)

    Raises:
        UnauthorizedError: 토큰 없음, 무효, 만료, 사용자 없음, 비밀번호 변경
                           (Missing, invalid or expired token; user gone;
                           password changed)
    """
    token: str | None = credentials.credentials if credentials else None
    if not token and jwt_cookie and jwt_cookie != "loggedout":
        token = jwt_cookie
    if not token:
        raise UnauthorizedError()
    return await auth_service.authenticate(db, token)


async def get_optional_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    jwt_cookie: Annotated[str | None, Cookie(alias="jwt")] = None,
) -> User | None:
    """뷰용 로그인 사용자 — Cookie session for rendered pages, None when absent."""
    return await auth_service.get_logged_in_user(db, jwt_cookie)


def restrict_to(*roles: str) -> Callable[..., Awaitable[User]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory allowing only the given roles.

    Args:
        roles: 허용되는 역할 (Allowed roles: user, guide, lead-guide, admin)

    Returns:
        FastAPI 의존성 함수 — 인증된 사용자 반환 또는 403 발생
        (Dependency returning the User or raising 403)
    """
    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise ForbiddenError()
        return current_user
    return _check


# 편의 의존성 — Pre-configured role dependencies
require_admin = restrict_to("admin")
require_staff = restrict_to("admin", "lead-guide")                      # 투어/예약 관리 (Tour & booking management)
require_guides = restrict_to("admin", "lead-guide", "guide")            # 월간 계획 (Monthly plan)


class RequestBody:
    """JSON 또는 multipart/form 요청 본문.

    Parsed request body: plain fields plus uploaded files grouped by
    field name.
    """

    def __init__(self, fields: dict[str, Any], files: dict[str, list[UploadFile]]) -> None:
        self.fields: dict[str, Any] = fields
        self.files: dict[str, list[UploadFile]] = files

    def file(self, name: str) -> UploadFile | None:
        uploads = self.files.get(name)
        return uploads[0] if uploads else None

    def file_list(self, name: str) -> list[UploadFile]:
        return self.files.get(name, [])


async def get_request_body(request: Request) -> RequestBody:
    """본문을 content-type에 따라 파싱합니다.

    Parse a JSON object body or a multipart/urlencoded form. Empty file
    parts (no filename) are dropped.

    Raises:
        BadRequestError: JSON 객체가 아닌 본문 (Body is not a JSON object)
    """
    content_type: str = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: dict[str, Any] = {}
        files: dict[str, list[UploadFile]] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    files.setdefault(key, []).append(value)
            else:
                fields[key] = value
        return RequestBody(fields, files)

    raw: bytes = await request.body()
    if not raw.strip():
        return RequestBody({}, {})
    try:
        data = json.loads(raw)
    except ValueError:
        raise BadRequestError("Invalid JSON body")
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return RequestBody(data, {})
