"""인증 서비스 — 회원가입, 로그인, 토큰 검증, 비밀번호 재설정 비즈니스 로직.

Auth Service — Business logic for signup, login, JWT verification and the
password lifecycle. A token is returned in the response body and also set
as an HTTP-only "jwt" cookie so the server-rendered views share the session.
"""

import logging
from uuid import UUID

import aiosmtplib
import jwt
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.config import settings
from tourbook.models.user import User
from tourbook.repositories.user_repository import user_repository
from tourbook.schemas.auth import (
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UpdatePasswordRequest,
)
from tourbook.schemas.common import StatusResponse
from tourbook.schemas.user import UserResponse
from tourbook.utils.email import Email
from tourbook.utils.exceptions import (
    BadRequestError,
    DuplicateError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)
from tourbook.utils.jwt import create_access_token, decode_token

logger = logging.getLogger(__name__)

# jwt 쿠키 이름 — Session cookie name
COOKIE_NAME: str = "jwt"
# 로그아웃 시 쿠키 유지 시간(초) — Lifetime of the "loggedout" cookie
LOGOUT_COOKIE_SECONDS: int = 10


def is_secure(request: Request) -> bool:
    """HTTPS 요청 여부 — Direct TLS or a TLS-terminating proxy."""
    return request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    Manages signup, login/logout, token verification and password
    reset/change flows.
    """

    def send_token(
        self,
        user: User,
        request: Request,
        status_code: int = 200,
    ) -> JSONResponse:
        """토큰을 발급하고 본문과 쿠키로 함께 반환합니다.

        Sign a token for the user and return it in the JSON body and as the
        HTTP-only jwt cookie.

        Args:
            user: 인증된 사용자 (Authenticated user)
            request: 현재 요청 — secure 쿠키 판별용 (Used to detect HTTPS)
            status_code: 응답 상태 코드 (Response status code)

        Returns:
            JSONResponse: {"status", "token", "data": {"user"}} 응답
        """
        token: str = create_access_token(str(user.id))
        body: TokenResponse = TokenResponse.for_user(token, UserResponse.model_validate(user))
        response = JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
        response.set_cookie(
            COOKIE_NAME,
            token,
            max_age=settings.JWT_COOKIE_EXPIRES_IN_DAYS * 24 * 60 * 60,
            httponly=True,
            secure=is_secure(request),
            samesite="lax",
        )
        return response

    def logout(self) -> JSONResponse:
        """쿠키를 "loggedout"으로 덮어써 세션을 종료합니다."""
        response = JSONResponse(content=StatusResponse().model_dump(exclude_none=True))
        response.set_cookie(COOKIE_NAME, "loggedout", max_age=LOGOUT_COOKIE_SECONDS, httponly=True)
        return response

    async def signup(
        self,
        db: AsyncSession,
        data: SignupRequest,
        base_url: str,
    ) -> User:
        """회원가입을 처리하고 환영 메일을 보냅니다.

        Create a new account with the default "user" role and send the
        welcome email.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 회원가입 요청 데이터 (Signup request data)
            base_url: 메일 링크용 사이트 주소 (Site URL used in the email)

        Returns:
            User: 생성된 사용자 (Created user)

        Raises:
            DuplicateError: 이메일이 이미 사용 중일 때 (Email already in use)
        """
        if await user_repository.exists(db, {"email": data.email}):
            raise DuplicateError("Email already in use. Please use another email!")

        user = User(name=data.name, email=data.email)
        user.set_password(data.password)
        db.add(user)
        await db.flush()

        await Email(user.name, user.email, f"{base_url}me").send_welcome()
        return user

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> User:
        """로그인 자격 증명을 검증합니다.

        Raises:
            BadRequestError: 이메일 또는 비밀번호 누락 (Missing email or password)
            UnauthorizedError: 자격 증명 불일치 (Incorrect email or password)
        """
        if not data.email or not data.password:
            raise BadRequestError("Please provide email and password!")

        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None or not user.correct_password(data.password):
            raise UnauthorizedError("Incorrect email or password")
        return user

    async def authenticate(
        self,
        db: AsyncSession,
        token: str,
    ) -> User:
        """JWT를 검증하고 토큰 소유자를 반환합니다.

        Verify a token and return its owner. Every failure is a 401: bad
        signature, expiry, deleted/deactivated user, or a password changed
        after the token was issued.
        """
        try:
            payload: dict = decode_token(token)
            user_id = UUID(payload["id"])
            issued_at = int(payload["iat"])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Your token has expired! Please log in again.")
        except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
            raise UnauthorizedError("Invalid token. Please log in again!")

        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise UnauthorizedError("The user belonging to this token does no longer exist.")

        if user.changed_password_after(issued_at):
            raise UnauthorizedError("User recently changed password! Please log in again.")
        return user

    async def get_logged_in_user(
        self,
        db: AsyncSession,
        token: str | None,
    ) -> User | None:
        """뷰용 선택적 인증 — Optional session lookup that never raises a 401."""
        if not token or token == "loggedout":
            return None
        try:
            return await self.authenticate(db, token)
        except UnauthorizedError:
            return None

    async def forgot_password(
        self,
        db: AsyncSession,
        email: str,
        base_url: str,
    ) -> None:
        """비밀번호 재설정 토큰을 생성하고 메일로 보냅니다.

        Store a hashed reset token (valid 10 minutes) and email the plain
        token link. If sending fails the token is cleared again.

        Raises:
            NotFoundError: 해당 이메일의 사용자 없음 (No user with that email)
            ServerError: 메일 발송 실패 (Email delivery failed)
        """
        user: User | None = await user_repository.get_by_email(db, email)
        if user is None:
            raise NotFoundError("There is no user with email address.")

        reset_token: str = user.create_password_reset_token()
        await db.flush()

        reset_url = f"{base_url}api/v1/users/resetPassword/{reset_token}"
        try:
            await Email(user.name, user.email, reset_url).send_password_reset()
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("Password reset email to %s failed", user.email)
            user.clear_password_reset()
            await db.flush()
            raise ServerError("There was an error sending the email. Try again later!")

    async def reset_password(
        self,
        db: AsyncSession,
        token: str,
        data: ResetPasswordRequest,
    ) -> User:
        """재설정 토큰으로 새 비밀번호를 설정합니다.

        Raises:
            BadRequestError: 토큰이 없거나 만료됨 (Token invalid or expired)
        """
        user: User | None = await user_repository.get_by_reset_token(db, token)
        if user is None or not user.reset_token_valid():
            raise BadRequestError("Token is invalid or has expired")

        user.set_password(data.password)
        user.clear_password_reset()
        await db.flush()
        return user

    async def update_password(
        self,
        db: AsyncSession,
        user: User,
        data: UpdatePasswordRequest,
    ) -> User:
        """현재 비밀번호 확인 후 비밀번호를 변경합니다.

        Raises:
            UnauthorizedError: 현재 비밀번호 불일치 (Current password is wrong)
        """
        if not user.correct_password(data.password_current):
            raise UnauthorizedError("Your current password is wrong.")

        user.set_password(data.password)
        await db.flush()
        return user


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
