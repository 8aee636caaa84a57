import asyncio
from datetime import datetime, timezone

from .database import AsyncSessionLocal, init_db
from .logger import logger
from .models import Role, User, Vinyl
from .security import hash_password

TEST_USER_EMAIL = "test@example.com"


def demo_vinyls():
    now = datetime.now(timezone.utc)
    return [
        Vinyl(id="vinyl-A", title="Kind of Blue", artist="Miles Davis", price=39.90, stock=10,
              cover_path="/covers/kind-of-blue.jpg", gallery=[], is_principal=True, created_at=now, updated_at=now),
        Vinyl(id="vinyl-B", title="Blue Train", artist="John Coltrane", price=34.50, stock=5,
              cover_path="/covers/blue-train.jpg", gallery=[], is_principal=False, created_at=now, updated_at=now),
        # Out of stock, for exercising the 409 path
        Vinyl(id="vinyl-C", title="Mingus Ah Um", artist="Charles Mingus", price=29.00, stock=0,
              cover_path="/covers/mingus-ah-um.jpg", gallery=[], is_principal=False, created_at=now, updated_at=now),
    ]


async def seed():
    await init_db()
    async with AsyncSessionLocal() as session:
        if await session.get(Vinyl, "vinyl-A"):
            logger.info("Catalogue already seeded.")
        else:
            session.add_all(demo_vinyls())
            logger.info("Catalogue seeded successfully.")

        existing = await session.get(User, "test-user")
        if existing is None:
            session.add(User(
                id="test-user",
                name="Test User",
                email=TEST_USER_EMAIL,
                password=hash_password("password123"),
                roles=[Role.USER.value],
                email_verified=True,
            ))
            logger.info(f"Created test user: {TEST_USER_EMAIL}")
        await session.commit()


if __name__ == "__main__":
    asyncio.run(seed())
