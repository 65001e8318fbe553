"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers signup, login, password reset and password change.
"""

from typing import Any

from pydantic import BaseModel, model_validator

from tourbook.schemas.user import Email, Name, Password, UserResponse


def _passwords_match(password: str, password_confirm: str) -> None:
    if password != password_confirm:
        raise ValueError("Passwords are not the same!")


class SignupRequest(BaseModel):
    """회원가입 요청 스키마.

    Signup request schema. The role is always "user"; any role sent by the
    client is ignored.

    Attributes:
        name: 이름 (Display name)
        email: 이메일 (Login email, lower-cased)
        password: 비밀번호, 8자 이상 (Plain text, min 8 chars)
        password_confirm: 비밀번호 확인 (Must equal password)
    """

    name: Name
    email: Email
    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirm(self) -> "SignupRequest":
        _passwords_match(self.password, self.password_confirm)
        return self


class LoginRequest(BaseModel):
    """로그인 요청 스키마 — 누락 시 서비스에서 400 처리 (missing fields -> 400)."""

    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    """비밀번호 재설정 요청 스키마."""

    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirm(self) -> "ResetPasswordRequest":
        _passwords_match(self.password, self.password_confirm)
        return self


class UpdatePasswordRequest(BaseModel):
    """비밀번호 변경 요청 스키마.

    Attributes:
        password_current: 현재 비밀번호 (Current password)
        password: 새 비밀번호 (New password, min 8 chars)
        password_confirm: 새 비밀번호 확인 (Must equal password)
    """

    password_current: str
    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirm(self) -> "UpdatePasswordRequest":
        _passwords_match(self.password, self.password_confirm)
        return self


class TokenResponse(BaseModel):
    """JWT 발급 응답 스키마.

    {"status": "success", "token": "...", "data": {"user": {...}}}
    """

    status: str = "success"
    token: str
    data: dict[str, Any]

    @classmethod
    def for_user(cls, token: str, user: UserResponse) -> "TokenResponse":
        return cls(token=token, data={"user": user})
