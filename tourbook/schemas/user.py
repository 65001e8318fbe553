"""사용자 관련 Pydantic 요청/응답 스키마 정의.

User-related Pydantic request/response schema definitions.
Password fields never appear in a response schema.
"""

from typing import Annotated, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, StringConstraints

Role = Literal["user", "guide", "lead-guide", "admin"]

# 이메일 — 소문자 정규화 및 형식 검증 (Lower-cased, format-checked email)
Email = Annotated[EmailStr, AfterValidator(str.lower)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Password = Annotated[str, StringConstraints(min_length=8)]


class UserResponse(BaseModel):
    """사용자 응답 스키마.

    Public user representation (password, reset and active fields excluded).
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    photo: str
    role: str


class UserUpdate(BaseModel):
    """관리자 사용자 수정 요청 스키마 — 비밀번호는 변경 불가.

    Admin user update (partial). Passwords are changed only through the
    password endpoints.
    """

    name: Name | None = None
    email: Email | None = None
    role: Role | None = None
    photo: str | None = None


class UpdateMeRequest(BaseModel):
    """본인 정보 수정 요청 — name, email만 허용 (other keys are ignored)."""

    name: Name | None = None
    email: Email | None = None


USER_FILTER_FIELDS: tuple[str, ...] = ("name", "email", "role", "created_at")
USER_OUTPUT_FIELDS: tuple[str, ...] = tuple(UserResponse.model_fields)
