"""보안 유틸리티 및 모델 헬퍼 단위 테스트.

Unit tests for password hashing, JWT tokens, the user password lifecycle
and the tour model hooks (slug, rating rounding).
"""

from datetime import timedelta

import jwt
import pytest

from tourbook.config import settings
from tourbook.models.tour import Tour
from tourbook.models.user import User, hash_reset_token
from tourbook.utils.dates import utcnow
from tourbook.utils.jwt import create_access_token, decode_token
from tourbook.utils.password import hash_password, verify_password


class TestPassword:
    """비밀번호 해싱 테스트."""

    def test_hash_and_verify(self):
        hashed = hash_password("pass1234")
        assert hashed != "pass1234"
        assert hashed.startswith("$2b$")
        assert verify_password("pass1234", hashed)
        assert not verify_password("wrong", hashed)

    def test_fresh_salt(self):
        assert hash_password("pass1234") != hash_password("pass1234")


class TestJwt:
    """JWT 토큰 테스트."""

    def test_roundtrip_claims(self):
        token = create_access_token("user-1")
        payload = decode_token(token)
        assert payload["id"] == "user-1"
        assert payload["exp"] - payload["iat"] == pytest.approx(
            settings.JWT_EXPIRES_IN_DAYS * 86400, abs=1
        )

    def test_expired(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-10))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"id": "user-1"}, "another-secret", algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)


class TestUserPasswordLifecycle:
    """사용자 비밀번호 변경/재설정 테스트."""

    def _user(self) -> User:
        user = User(name="Laura Wilson", email="laura@test.io")
        user.set_password("pass1234")
        return user

    def test_new_user_has_no_change_time(self):
        user = self._user()
        assert user.password_changed_at is None
        assert user.correct_password("pass1234")
        assert not user.changed_password_after(0)

    def test_change_recorded(self):
        user = self._user()
        issued = int((utcnow() - timedelta(hours=1)).timestamp())
        user.set_password("newpass1234")
        assert user.correct_password("newpass1234")
        assert user.changed_password_after(issued)
        # 변경 직후 발급된 토큰은 유효 — Token issued right after the change
        assert not user.changed_password_after(int(utcnow().timestamp()))

    def test_reset_token(self):
        user = self._user()
        token = user.create_password_reset_token()
        assert len(token) == 64
        assert user.password_reset_token == hash_reset_token(token)
        assert user.password_reset_token != token
        assert user.reset_token_valid()

        user.password_reset_expires = utcnow() - timedelta(seconds=1)
        assert not user.reset_token_valid()

        user.clear_password_reset()
        assert user.password_reset_token is None
        assert not user.reset_token_valid()


class TestTourModel:
    """투어 모델 훅 테스트."""

    @pytest.mark.parametrize("name, slug", [
        ("The Forest Hiker", "the-forest-hiker"),
        ("The Wine Taster!", "the-wine-taster"),
        ("Café  Crème Walk", "cafe-creme-walk"),
    ])
    def test_slug_from_name(self, name, slug):
        assert Tour(name=name).slug == slug

    def test_slug_follows_name(self):
        tour = Tour(name="The Forest Hiker")
        assert tour.slug == "the-forest-hiker"
        tour.name = "The Sea Explorer"
        assert tour.slug == "the-sea-explorer"

    @pytest.mark.parametrize("raw, rounded", [(4.666, 4.7), (4.25, 4.3), (4.0, 4.0), (1.04, 1.0)])
    def test_rating_rounded(self, raw, rounded):
        tour = Tour(name="The Forest Hiker")
        tour.ratings_average = raw
        assert tour.ratings_average == rounded

    def test_duration_weeks(self):
        tour = Tour(name="The Forest Hiker", duration=14)
        assert tour.duration_weeks == 2
