"""
Tests for the RBAC Admin Service
Integration tests over an in-memory SQLite database
"""

import pytest
from unittest.mock import patch
from sqlalchemy import func, select

from campaign_rbac.core.exceptions import DuplicateEntity, EntityNotFound, MalformedIdentifier
from campaign_rbac.core.permission_resolver import PermissionResolver
from campaign_rbac.models import UserRole
from campaign_rbac.repositories.permission_store import SQLAlchemyPermissionStore
from campaign_rbac.repositories.rbac import user_role_repository
from campaign_rbac.services.rbac_admin import rbac_admin_service


@pytest.fixture
def resolver(db):
    return PermissionResolver(SQLAlchemyPermissionStore(db))


async def count_user_roles(db, user_id):
    result = await db.execute(select(func.count()).select_from(UserRole).where(UserRole.user_id == user_id))
    return result.scalar_one()


# ── entities ──

class TestCreateEntities:
    @pytest.mark.asyncio
    async def test_create_role(self, db):
        role = await rbac_admin_service.create_role(db, "  auditor ", "Read-only auditor")

        assert role.id is not None
        assert role.name == "auditor"
        assert role.is_active is True

    @pytest.mark.asyncio
    async def test_create_permission_derives_resource_and_action(self, db):
        permission = await rbac_admin_service.create_permission(db, "campaign_images.review")

        assert permission.resource == "campaign_images"
        assert permission.action == "review"

    @pytest.mark.asyncio
    async def test_create_permission_rejects_malformed_name(self, db):
        with pytest.raises(MalformedIdentifier):
            await rbac_admin_service.create_permission(db, "campaigns")

    @pytest.mark.asyncio
    async def test_create_function(self, db):
        function = await rbac_admin_service.create_function(
            db, "view_user_list", "Display list of users", "user_management"
        )

        assert function.module == "user_management"

    @pytest.mark.asyncio
    async def test_duplicate_role_raises(self, db):
        await rbac_admin_service.create_role(db, "employee")

        with pytest.raises(DuplicateEntity, match="already exists"):
            await rbac_admin_service.create_role(db, "employee")

    @pytest.mark.asyncio
    async def test_set_role_active(self, db, seed, resolver):
        user = await seed.user()
        role = await seed.role("employee")
        permission = await seed.permission("users.read")
        await seed.assign(user, role)
        await seed.grant(role, permission)

        updated = await rbac_admin_service.set_role_active(db, "employee", False)
        assert updated.is_active is False
        assert await resolver.effective_permissions(user.id) == frozenset()

        await rbac_admin_service.set_role_active(db, "employee", True)
        assert await resolver.effective_permissions(user.id) == frozenset({"users.read"})

    @pytest.mark.asyncio
    async def test_set_permission_active_unknown_raises(self, db):
        with pytest.raises(EntityNotFound):
            await rbac_admin_service.set_permission_active(db, "users.read", False)

    @pytest.mark.asyncio
    async def test_set_function_active(self, db, seed):
        await seed.function("view_user_list")

        function = await rbac_admin_service.set_function_active(db, "view_user_list", False)

        assert function.is_active is False


# ── links ──

class TestAssignRole:
    @pytest.mark.asyncio
    async def test_assign_then_resolve(self, db, seed, resolver):
        user = await seed.user()
        role = await seed.role("employee")
        await seed.grant(role, await seed.permission("users.read"))

        row = await rbac_admin_service.assign_role(db, user.id, "employee")

        assert row.is_active is True
        assert await resolver.effective_permissions(user.id) == frozenset({"users.read"})

    @pytest.mark.asyncio
    async def test_assign_twice_keeps_single_active_row(self, db, seed):
        user = await seed.user()
        await seed.role("employee")

        first = await rbac_admin_service.assign_role(db, user.id, "employee")
        second = await rbac_admin_service.assign_role(db, user.id, "employee")

        assert first.id == second.id
        assert await count_user_roles(db, user.id) == 1

    @pytest.mark.asyncio
    async def test_assign_reactivates_revoked_row(self, db, seed, resolver):
        user = await seed.user()
        role = await seed.role("employee")
        await seed.grant(role, await seed.permission("users.read"))
        await rbac_admin_service.assign_role(db, user.id, "employee")

        assert await rbac_admin_service.revoke_role(db, user.id, "employee") is True
        assert await resolver.effective_permissions(user.id) == frozenset()

        row = await rbac_admin_service.assign_role(db, user.id, "employee")

        assert row.is_active is True
        assert await count_user_roles(db, user.id) == 1
        assert await resolver.effective_permissions(user.id) == frozenset({"users.read"})

    @pytest.mark.asyncio
    async def test_revoke_when_not_held(self, db, seed):
        user = await seed.user()
        await seed.role("employee")

        assert await rbac_admin_service.revoke_role(db, user.id, "employee") is False

    @pytest.mark.asyncio
    async def test_unknown_user_or_role(self, db, seed):
        user = await seed.user()
        await seed.role("employee")

        with pytest.raises(EntityNotFound, match="User not found"):
            await rbac_admin_service.assign_role(db, 999, "employee")
        with pytest.raises(EntityNotFound, match="Role not found"):
            await rbac_admin_service.assign_role(db, user.id, "ghost")

    @pytest.mark.asyncio
    async def test_id_beyond_key_range_is_unknown_user(self, db, seed):
        await seed.role("employee")

        with pytest.raises(EntityNotFound, match="User not found"):
            await rbac_admin_service.assign_role(db, 10**20, "employee")
        assert await rbac_admin_service.revoke_role(db, 10**20, "employee") is False

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, db):
        with pytest.raises(MalformedIdentifier):
            await rbac_admin_service.assign_role(db, 0, "employee")

    @pytest.mark.asyncio
    async def test_concurrent_insert_resolves_to_existing_row(self, db, seed):
        user = await seed.user()
        role = await seed.role("employee")
        existing = await seed.assign(user, role)
        user_id, existing_id = user.id, existing.id

        original_get_pair = user_role_repository.get_pair
        lookups = []

        async def racing_lookup(session, uid, role_id):
            # First lookup misses, as if another writer inserted right after it
            lookups.append(uid)
            if len(lookups) == 1:
                return None
            return await original_get_pair(session, uid, role_id)

        with patch.object(user_role_repository, "get_pair", side_effect=racing_lookup):
            row = await rbac_admin_service.assign_role(db, user_id, "employee")

        assert row.id == existing_id
        assert len(lookups) == 2
        assert await count_user_roles(db, user_id) == 1


class TestGrantsAndLinks:
    @pytest.mark.asyncio
    async def test_grant_and_revoke_permission(self, db, seed, resolver):
        user = await seed.user()
        role = await seed.role("employee")
        await seed.permission("users.read")
        await seed.assign(user, role)

        await rbac_admin_service.grant_permission(db, "employee", "users.read")
        assert await resolver.effective_permissions(user.id) == frozenset({"users.read"})

        assert await rbac_admin_service.revoke_permission(db, "employee", "users.read") is True
        assert await rbac_admin_service.revoke_permission(db, "employee", "users.read") is False
        assert await resolver.effective_permissions(user.id) == frozenset()

    @pytest.mark.asyncio
    async def test_grant_unknown_permission(self, db, seed):
        await seed.role("employee")

        with pytest.raises(EntityNotFound, match="Permission not found"):
            await rbac_admin_service.grant_permission(db, "employee", "users.read")

    @pytest.mark.asyncio
    async def test_link_and_unlink_function(self, db, seed, resolver):
        user = await seed.user()
        role = await seed.role("employee")
        permission = await seed.permission("users.read")
        await seed.function("view_user_list")
        await seed.assign(user, role)
        await seed.grant(role, permission)

        first = await rbac_admin_service.link_function(db, "users.read", "view_user_list")
        second = await rbac_admin_service.link_function(db, "users.read", "view_user_list")
        assert first.id == second.id
        assert await resolver.effective_functions(user.id) == frozenset({"view_user_list"})

        assert await rbac_admin_service.unlink_function(db, "users.read", "view_user_list") is True
        assert await resolver.effective_functions(user.id) == frozenset()
