"""사용자 라우터 — 인증, 본인 정보, 관리자용 사용자 관리 엔드포인트.

User Router — Authentication, self-service profile and admin user
management endpoints.

Permission Matrix (역할별 권한 설계):
    - signup/login/logout/forgotPassword/resetPassword: 공개 (Public)
    - updateMyPassword/me/updateMe/deleteMe: 로그인 사용자 (Logged in)
    - 사용자 목록/상세/수정/삭제: admin만
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.api.deps import RequestBody, get_current_user, get_request_body, require_admin
from tourbook.database import get_db
from tourbook.models.user import User
from tourbook.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UpdatePasswordRequest,
)
from tourbook.schemas.common import DocumentResponse, ListResponse, StatusResponse, document, listing
from tourbook.schemas.user import UserUpdate
from tourbook.services.auth_service import auth_service
from tourbook.services.user_service import user_service
from tourbook.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


# ---------------------------------------------------------------------------
# 인증 — Authentication
# ---------------------------------------------------------------------------
@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(
    data: SignupRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """회원가입 — 가입 즉시 로그인된 토큰을 반환합니다.

    Create an account and log it in. Sends the welcome email.
    """
    user: User = await auth_service.signup(db, data, str(request.base_url))
    await db.commit()
    return auth_service.send_token(user, request, status_code=201)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """로그인 — 토큰을 본문과 jwt 쿠키로 반환합니다."""
    user: User = await auth_service.login(db, data)
    return auth_service.send_token(user, request)


@router.get("/logout", response_model=StatusResponse)
async def logout() -> JSONResponse:
    """로그아웃 — jwt 쿠키를 10초짜리 "loggedout" 값으로 덮어씁니다."""
    return auth_service.logout()


@router.post("/forgotPassword", response_model=StatusResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StatusResponse:
    """비밀번호 재설정 메일 발송 — Email a 10 minute reset link."""
    await auth_service.forgot_password(db, data.email, str(request.base_url))
    await db.commit()
    return StatusResponse(message="Token sent to email!")


@router.patch("/resetPassword/{token}", response_model=TokenResponse)
async def reset_password(
    token: str,
    data: ResetPasswordRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """재설정 토큰으로 비밀번호를 변경하고 로그인합니다."""
    user: User = await auth_service.reset_password(db, token, data)
    await db.commit()
    return auth_service.send_token(user, request)


# ---------------------------------------------------------------------------
# 본인 정보 — Current user (protect)
# ---------------------------------------------------------------------------
@router.patch("/updateMyPassword", response_model=TokenResponse)
async def update_my_password(
    data: UpdatePasswordRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> JSONResponse:
    """현재 비밀번호 확인 후 변경 — 새 토큰을 발급합니다."""
    user: User = await auth_service.update_password(db, current_user, data)
    await db.commit()
    return auth_service.send_token(user, request)


@router.get("/me", response_model=DocumentResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> DocumentResponse:
    return document(user_service.get_me(current_user))


@router.patch("/updateMe", response_model=DocumentResponse)
async def update_me(
    body: Annotated[RequestBody, Depends(get_request_body)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> DocumentResponse:
    """본인 이름/이메일 수정 — JSON 또는 multipart (photo 파일).

    Update own name and email; a multipart body may carry a photo file.
    """
    result = await user_service.update_me(db, current_user, body.fields, photo=body.file("photo"))
    await db.commit()
    return document(result, key="user")


@router.delete("/deleteMe", status_code=204)
async def delete_me(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    """계정 비활성화 — Deactivate own account."""
    await user_service.delete_me(db, current_user)
    await db.commit()


# ---------------------------------------------------------------------------
# 관리자 — Admin only
# ---------------------------------------------------------------------------
@router.get("", response_model=ListResponse)
async def list_users(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> ListResponse:
    return listing(await user_service.list_users(db, request.query_params.multi_items()))


@router.post("")
async def create_user(
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    """사용자 생성은 지원하지 않습니다 — Accounts are created through /signup."""
    raise BadRequestError("This route is not defined! Please use /signup instead")


@router.get("/{user_id}", response_model=DocumentResponse)
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> DocumentResponse:
    return document(await user_service.get_user(db, user_id))


@router.patch("/{user_id}", response_model=DocumentResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> DocumentResponse:
    """사용자 정보 수정 (관리자) — 비밀번호는 이 경로로 변경할 수 없습니다."""
    result = await user_service.update_user(db, user_id, data)
    await db.commit()
    return document(result)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    await user_service.delete_user(db, user_id)
    await db.commit()
