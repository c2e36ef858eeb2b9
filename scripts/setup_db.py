"""
Database setup script: create tables and seed the baseline catalog
"""
import asyncio

from backend.database import engine, Base, AsyncSessionLocal
from backend import models  # noqa: F401  registers all tables on Base.metadata
from backend.services.seed_data import seed_catalog


async def setup_database():
    """Create tables and seed campuses, dish categories, ingredients and dishes"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        counts = await seed_catalog(session)
        await session.commit()

    for table, count in counts.items():
        print(f"  {table}: {count} added")
    print("Database setup complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(setup_database())
