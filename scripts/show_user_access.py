"""
Print the effective roles, permissions and functions of a user

Usage: python scripts/show_user_access.py <username>
"""
import argparse
import asyncio
import sys

from campaign_rbac.core.authorization import Authorizer
from campaign_rbac.core.database import AsyncSessionLocal, close_database
from campaign_rbac.core.logging import setup_logging
from campaign_rbac.core.permission_resolver import PermissionResolver
from campaign_rbac.repositories.permission_store import SQLAlchemyPermissionStore
from campaign_rbac.repositories.rbac import user_repository


async def show_user_access(username: str) -> int:
    setup_logging()

    try:
        async with AsyncSessionLocal() as db:
            user = await user_repository.get_by_username(db, username)
            if not user:
                print(f"❌ User '{username}' not found in database")
                return 1

            print(f"✓ Found user: {user.username} (ID: {user.id}, type: {user.user_type.value})")

            authorizer = Authorizer(PermissionResolver(SQLAlchemyPermissionStore(db)))
            summary = await authorizer.describe(user.id)

        print(f"\nRoles ({len(summary.roles)}):")
        for role in summary.roles:
            print(f"  - {role}")

        print(f"\nPermissions ({len(summary.permissions)}):")
        for permission in summary.permissions:
            print(f"  - {permission}")

        print(f"\nFunctions ({len(summary.functions)}):")
        for function in summary.functions:
            print(f"  - {function}")

        if not summary.roles:
            print("\n⚠️  User has no active roles and cannot access anything")
        return 0
    finally:
        await close_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show the resolved access of a user")
    parser.add_argument("username")
    args = parser.parse_args()
    sys.exit(asyncio.run(show_user_access(args.username)))
