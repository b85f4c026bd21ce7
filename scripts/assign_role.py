"""
Assign a role to a user, or revoke it with --revoke

Usage: python scripts/assign_role.py <username> <role> [--revoke]
"""
import argparse
import asyncio
import sys

from campaign_rbac.core.database import AsyncSessionLocal, close_database
from campaign_rbac.core.exceptions import RBACError
from campaign_rbac.core.logging import setup_logging
from campaign_rbac.repositories.rbac import user_repository
from campaign_rbac.services.rbac_admin import rbac_admin_service


async def assign_role(username: str, role: str, revoke: bool = False) -> int:
    setup_logging()

    try:
        async with AsyncSessionLocal() as db:
            user = await user_repository.get_by_username(db, username)
            if not user:
                print(f"❌ User '{username}' not found in database")
                return 1
            user_id = user.id

            try:
                if revoke:
                    changed = await rbac_admin_service.revoke_role(db, user_id, role)
                    if changed:
                        print(f"✅ Role '{role}' revoked from '{username}'")
                    else:
                        print(f"ℹ️  '{username}' did not hold role '{role}'")
                else:
                    await rbac_admin_service.assign_role(db, user_id, role)
                    print(f"✅ Role '{role}' assigned to '{username}'")
            except RBACError as exc:
                print(f"❌ {exc.message}")
                return 1
        return 0
    finally:
        await close_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Assign or revoke a user role")
    parser.add_argument("username")
    parser.add_argument("role")
    parser.add_argument("--revoke", action="store_true", help="Deactivate the assignment instead")
    args = parser.parse_args()
    sys.exit(asyncio.run(assign_role(args.username, args.role, revoke=args.revoke)))
