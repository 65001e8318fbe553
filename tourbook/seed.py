"""초기 데이터 시드 스크립트 — 스태프 계정과 샘플 투어 생성.

Seed script — Creates staff accounts and a few sample tours.
Run this script once to bootstrap a development database.

Usage:
    python -m tourbook.seed            # import
    python -m tourbook.seed --delete   # remove all tours, reviews, bookings, users

Creates:
    - 4개 계정: admin, lead-guide, guide, user (password: test1234)
    - 3개 투어: 가이드 배정 및 출발일 포함 (3 tours with guides and start dates)
"""

import asyncio
import logging
import sys

from sqlalchemy import delete, select

from tourbook.database import async_session, engine, Base
from tourbook.models import Booking, Review, Tour, User, tour_guides

logger = logging.getLogger(__name__)

SEED_PASSWORD: str = "test1234"

USERS: list[tuple[str, str, str]] = [
    ("Admin", "admin@tourbook.io", "admin"),
    ("Lourdes Browning", "lourdes@tourbook.io", "lead-guide"),
    ("Steve T. Williams", "steve@tourbook.io", "guide"),
    ("Laura Wilson", "laura@tourbook.io", "user"),
]

TOURS: list[dict] = [
    {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "image_cover": "tour-1-cover.jpg",
        "images": ["tour-1-1.jpg", "tour-1-2.jpg", "tour-1-3.jpg"],
        "start_dates": ["2027-04-25T09:00:00", "2027-07-20T09:00:00", "2027-10-05T09:00:00"],
        "start_location": {
            "type": "Point",
            "coordinates": [-115.570154, 51.178456],
            "address": "224 Banff Ave, Banff, AB, Canada",
            "description": "Banff, CAN",
        },
        "locations": [
            {"type": "Point", "coordinates": [-116.214531, 51.417611], "description": "Banff National Park", "day": 1},
            {"type": "Point", "coordinates": [-118.076152, 52.875223], "description": "Jasper National Park", "day": 3},
        ],
    },
    {
        "name": "The Sea Explorer",
        "duration": 7,
        "max_group_size": 15,
        "difficulty": "medium",
        "price": 497,
        "summary": "Exploring the jaw-dropping US east coast by foot and by boat",
        "image_cover": "tour-2-cover.jpg",
        "images": ["tour-2-1.jpg", "tour-2-2.jpg", "tour-2-3.jpg"],
        "start_dates": ["2027-06-19T09:00:00", "2027-07-20T09:00:00", "2027-08-18T09:00:00"],
        "start_location": {
            "type": "Point",
            "coordinates": [-80.185942, 25.774772],
            "address": "301 Biscayne Blvd, Miami, FL 33132, USA",
            "description": "Miami, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-80.128473, 25.781842], "description": "Lummus Park Beach", "day": 1},
            {"type": "Point", "coordinates": [-80.647885, 24.909047], "description": "Islamorada", "day": 2},
        ],
    },
    {
        "name": "The Snow Adventurer",
        "duration": 4,
        "max_group_size": 10,
        "difficulty": "difficult",
        "price": 997,
        "summary": "Exciting adventure in the snow with snowboarding and skiing",
        "image_cover": "tour-3-cover.jpg",
        "images": ["tour-3-1.jpg", "tour-3-2.jpg", "tour-3-3.jpg"],
        "start_dates": ["2027-01-05T10:00:00", "2027-02-12T10:00:00", "2028-01-06T10:00:00"],
        "start_location": {
            "type": "Point",
            "coordinates": [-106.822318, 39.190872],
            "address": "419 S Mill St, Aspen, CO 81611, USA",
            "description": "Aspen, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-106.855385, 39.182677], "description": "Aspen Highlands", "day": 1},
        ],
    },
]


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with staff accounts and sample tours.
    Creates tables if they don't exist.

    Idempotent: 사용자가 이미 있으면 건너뜁니다 (Skips if any user exists).
    """
    # 테이블 생성 — Create all tables from ORM metadata
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            logger.info("Already seeded. Skipping.")
            return

        users: dict[str, User] = {}
        for name, email, role in USERS:
            user: User = User(name=name, email=email, role=role)
            user.set_password(SEED_PASSWORD)
            db.add(user)
            users[role] = user
        await db.flush()  # flush로 user.id 생성 (Flush to generate user ids)

        for data in TOURS:
            tour: Tour = Tour(**data)
            tour.guides = [users["lead-guide"], users["guide"]]
            db.add(tour)

        await db.commit()
        logger.info("Seeded %d users and %d tours (password: %s)", len(USERS), len(TOURS), SEED_PASSWORD)


async def clear() -> None:
    """모든 데이터 삭제 — Delete every booking, review, tour and user."""
    async with async_session() as db:
        # 자식 테이블부터 삭제 — Children first
        for statement in (
            delete(Booking),
            delete(Review),
            tour_guides.delete(),
            delete(Tour),
            delete(User),
        ):
            await db.execute(statement)
        await db.commit()
        logger.info("Data successfully deleted")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(clear() if "--delete" in sys.argv else seed())
