"""
Create the RBAC tables and seed the default roles, permissions and functions
Safe to run repeatedly
"""
import asyncio
import sys

from campaign_rbac.core.database import (
    AsyncSessionLocal,
    check_database_health,
    close_database,
    init_database,
)
from campaign_rbac.core.logging import setup_logging
from campaign_rbac.services.bootstrap_rbac import ensure_rbac_catalog


async def seed_rbac() -> int:
    setup_logging()

    if not await check_database_health():
        print("❌ Database is not reachable, check DATABASE_URL")
        return 1

    try:
        await init_database()

        async with AsyncSessionLocal() as db:
            created = await ensure_rbac_catalog(db)

        print("✅ RBAC catalog ready")
        for table, count in created.items():
            print(f"  {table}: {count} created")
        return 0
    finally:
        await close_database()


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_rbac()))
