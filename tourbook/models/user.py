"""사용자 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definition.
Implements role-based access control with four fixed roles and the
password lifecycle (hashing, change tracking, reset tokens).

Tables:
    - users: 사용자 계정 (User accounts)
"""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourbook.database import Base
from tourbook.utils.dates import as_utc, utcnow
from tourbook.utils.password import hash_password, verify_password

# 역할 목록 — Allowed roles, lowest to highest authority
ROLES: tuple[str, ...] = ("user", "guide", "lead-guide", "admin")

# 비밀번호 재설정 토큰 유효 시간 — Reset token lifetime
PASSWORD_RESET_TTL: timedelta = timedelta(minutes=10)


def hash_reset_token(token: str) -> str:
    """재설정 토큰의 sha256 해시 — Only the digest is stored in the database."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    Email is unique and stored lower-cased. Deactivated users (active=False)
    are excluded from every repository lookup.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 이름 (Display name)
        email: 이메일, 고유 (Unique login email)
        photo: 프로필 사진 파일명 (Photo file name)
        role: 역할 (user | guide | lead-guide | admin)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        password_changed_at: 비밀번호 변경 일시 (Last password change)
        password_reset_token: 재설정 토큰 sha256 해시 (Hashed reset token)
        password_reset_expires: 재설정 토큰 만료 일시 (Reset token expiry)
        active: 활성 상태 (Active status, soft-delete pattern)
        created_at: 생성 일시 UTC (Creation timestamp)

    Relationships:
        reviews: 작성한 리뷰 (Authored reviews, cascade delete)
        bookings: 예약 목록 (Bookings, cascade delete)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 로그인 이메일 — 소문자로 저장 (stored lower-cased)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    photo: Mapped[str] = mapped_column(String(255), default="default.jpg", nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)
    # 비밀번호 해시 — bcrypt (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    password_reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        """비밀번호를 해싱해 저장합니다.

        Hash and store a new password. For an existing account the change
        time is recorded one second in the past, so a token issued right
        after the change still passes changed_password_after().
        """
        is_new: bool = self.password_hash is None
        self.password_hash = hash_password(password)
        if not is_new:
            self.password_changed_at = utcnow() - timedelta(seconds=1)

    def correct_password(self, candidate: str) -> bool:
        return verify_password(candidate, self.password_hash)

    def changed_password_after(self, jwt_timestamp: int) -> bool:
        """토큰 발급(iat) 이후 비밀번호가 변경되었는지 확인합니다.

        Return True when the password was changed after the token was issued.
        """
        if self.password_changed_at is None:
            return False
        changed_timestamp = int(as_utc(self.password_changed_at).timestamp())
        return jwt_timestamp < changed_timestamp

    def create_password_reset_token(self) -> str:
        """비밀번호 재설정 토큰을 생성합니다.

        Generate a random reset token, store its sha256 digest with a
        10 minute expiry, and return the plain token for the email.
        """
        reset_token: str = secrets.token_hex(32)
        self.password_reset_token = hash_reset_token(reset_token)
        self.password_reset_expires = utcnow() + PASSWORD_RESET_TTL
        return reset_token

    def reset_token_valid(self) -> bool:
        if self.password_reset_expires is None:
            return False
        return as_utc(self.password_reset_expires) > utcnow()

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None
