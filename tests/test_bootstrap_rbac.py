"""
Tests for seeding the default RBAC catalog
"""

import pytest
from sqlalchemy import func, select

from campaign_rbac.core.permission_resolver import PermissionResolver
from campaign_rbac.core.rbac import ALL_RBAC_PERMISSIONS, DEFAULT_ROLES, PERMISSION_FUNCTIONS
from campaign_rbac.models import RolePermission
from campaign_rbac.repositories.permission_store import SQLAlchemyPermissionStore
from campaign_rbac.services.bootstrap_rbac import ensure_rbac_catalog
from campaign_rbac.services.rbac_admin import rbac_admin_service


@pytest.mark.asyncio
async def test_first_run_creates_everything(db):
    created = await ensure_rbac_catalog(db)

    assert created["permissions"] == len(ALL_RBAC_PERMISSIONS)
    assert created["functions"] == len(PERMISSION_FUNCTIONS)
    assert created["roles"] == len(DEFAULT_ROLES)
    assert created["role_permissions"] == sum(len(c["permissions"]) for c in DEFAULT_ROLES.values())
    assert created["function_links"] == len(PERMISSION_FUNCTIONS)


@pytest.mark.asyncio
async def test_second_run_is_a_no_op(db):
    await ensure_rbac_catalog(db)
    count_before = (await db.execute(select(func.count()).select_from(RolePermission))).scalar_one()

    created = await ensure_rbac_catalog(db)

    assert set(created.values()) == {0}
    count_after = (await db.execute(select(func.count()).select_from(RolePermission))).scalar_one()
    assert count_after == count_before


@pytest.mark.asyncio
async def test_seeded_roles_resolve(db, seed):
    await ensure_rbac_catalog(db)
    contractor = await seed.user("contractor_user")
    await rbac_admin_service.assign_role(db, contractor.id, "contractor")

    resolver = PermissionResolver(SQLAlchemyPermissionStore(db))

    assert await resolver.effective_permissions(contractor.id) == frozenset(
        DEFAULT_ROLES["contractor"]["permissions"]
    )
    functions = await resolver.effective_functions(contractor.id)
    assert "upload_campaign_image" in functions
    assert "view_user_list" not in functions


@pytest.mark.asyncio
async def test_rerun_keeps_administrative_deactivation(db, seed):
    await ensure_rbac_catalog(db)
    user = await seed.user()
    await rbac_admin_service.assign_role(db, user.id, "basic_employee")
    await rbac_admin_service.revoke_permission(db, "basic_employee", "users.read")

    await ensure_rbac_catalog(db)

    resolver = PermissionResolver(SQLAlchemyPermissionStore(db))
    assert "users.read" not in await resolver.effective_permissions(user.id)
