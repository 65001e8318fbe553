"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB (aiosqlite), session, and httpx
client fixtures. Each test gets a fresh database; the schema is created
from the ORM metadata. Environment variables are set before the app is
imported so settings pick them up.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PUBLIC_DIR"] = tempfile.mkdtemp(prefix="tourbook-test-")
os.environ["ENVIRONMENT"] = "development"
os.environ["SMTP_HOST"] = ""
os.environ["AXIOM_API_TOKEN"] = ""
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_dummy"

from collections.abc import AsyncGenerator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from tourbook.database import Base, get_db  # noqa: E402
from tourbook.main import app  # noqa: E402
from tourbook.models import *  # noqa: F401,F403,E402 — register all models with metadata
from tourbook.models.tour import Tour  # noqa: E402
from tourbook.models.user import User  # noqa: E402
from tourbook.utils.jwt import create_access_token  # noqa: E402

# ---------------------------------------------------------------------------
# 테스트 DB 설정
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PASSWORD = "pass1234"

FOREST_HIKER: dict[str, Any] = {
    "name": "The Forest Hiker",
    "duration": 5,
    "max_group_size": 25,
    "difficulty": "easy",
    "price": 397,
    "summary": "Breathtaking hike through the Canadian Banff National Park",
    "image_cover": "tour-1-cover.jpg",
    "start_dates": ["2027-04-25T09:00:00", "2027-07-20T09:00:00"],
    "start_location": {
        "type": "Point",
        "coordinates": [-115.570154, 51.178456],
        "description": "Banff, CAN",
    },
}


# ---------------------------------------------------------------------------
# bcrypt 비용 낮추기 — Keep hashing fast in tests
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr("tourbook.utils.password.BCRYPT_ROUNDS", 4)


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 새 인메모리 DB."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    role: str = "user",
    password: str = PASSWORD,
) -> User:
    """사용자를 생성합니다."""
    user = User(name=name, email=email, role=role)
    user.set_password(password)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def create_tour(db: AsyncSession, **overrides: Any) -> Tour:
    """투어를 생성합니다 — FOREST_HIKER 기본값에 overrides 적용."""
    tour = Tour(**{**FOREST_HIKER, **overrides})
    db.add(tour)
    await db.flush()
    await db.refresh(tour)
    return tour


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await create_user(db, "Test Admin", "admin@test.io", role="admin")


@pytest_asyncio.fixture
async def lead_guide_user(db: AsyncSession) -> User:
    return await create_user(db, "Lourdes Browning", "lead@test.io", role="lead-guide")


@pytest_asyncio.fixture
async def guide_user(db: AsyncSession) -> User:
    return await create_user(db, "Steve Williams", "guide@test.io", role="guide")


@pytest_asyncio.fixture
async def regular_user(db: AsyncSession) -> User:
    return await create_user(db, "Laura Wilson", "laura@test.io")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    return await create_user(db, "Max Smith", "max@test.io")


@pytest_asyncio.fixture
async def tour(db: AsyncSession) -> Tour:
    return await create_tour(db)


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token(str(user.id))


@pytest.fixture
def admin_token(admin_user) -> str:
    return make_token(admin_user)


@pytest.fixture
def lead_guide_token(lead_guide_user) -> str:
    return make_token(lead_guide_user)


@pytest.fixture
def guide_token(guide_user) -> str:
    return make_token(guide_user)


@pytest.fixture
def user_token(regular_user) -> str:
    return make_token(regular_user)


@pytest.fixture
def other_token(other_user) -> str:
    return make_token(other_user)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
