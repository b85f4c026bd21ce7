"""
Bootstrap of the canonical RBAC catalog.
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campaign_rbac.core.rbac import (
    ALL_RBAC_PERMISSIONS,
    DEFAULT_ROLES,
    PERMISSION_FUNCTIONS,
    split_permission,
)
from campaign_rbac.models.rbac import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
)

logger = structlog.get_logger()


async def _by_name(db: AsyncSession, model) -> dict:
    result = await db.execute(select(model))
    return {row.name: row for row in result.scalars().all()}


async def _pairs(db: AsyncSession, left, right) -> set[tuple[int, int]]:
    result = await db.execute(select(left, right))
    return {(a, b) for a, b in result.all()}


async def ensure_rbac_catalog(db: AsyncSession) -> dict[str, int]:
    """
    Create whatever part of the default catalog is missing.

    Existing rows are left as they are, including deactivated ones, so
    running this again never undoes an administrative change.

    Returns:
        Number of rows created per table
    """
    created = {
        "roles": 0,
        "permissions": 0,
        "functions": 0,
        "role_permissions": 0,
        "function_links": 0,
    }

    permissions = await _by_name(db, Permission)
    for name in ALL_RBAC_PERMISSIONS:
        if name not in permissions:
            resource, action = split_permission(name)
            permissions[name] = Permission(name=name, resource=resource, action=action)
            db.add(permissions[name])
            created["permissions"] += 1

    functions = await _by_name(db, PermissionFunction)
    for definition in PERMISSION_FUNCTIONS:
        if definition.name not in functions:
            functions[definition.name] = PermissionFunction(
                name=definition.name,
                description=definition.description,
                module=definition.module,
            )
            db.add(functions[definition.name])
            created["functions"] += 1

    roles = await _by_name(db, Role)
    for name, config in DEFAULT_ROLES.items():
        if name not in roles:
            roles[name] = Role(name=name, description=config["description"])
            db.add(roles[name])
            created["roles"] += 1

    # Assign primary keys before building the join rows
    await db.flush()

    grants = await _pairs(db, RolePermission.role_id, RolePermission.permission_id)
    for name, config in DEFAULT_ROLES.items():
        role_id = roles[name].id
        for permission_name in config["permissions"]:
            pair = (role_id, permissions[permission_name].id)
            if pair not in grants:
                db.add(RolePermission(role_id=pair[0], permission_id=pair[1]))
                grants.add(pair)
                created["role_permissions"] += 1

    links = await _pairs(db, PermissionFunctionLink.permission_id, PermissionFunctionLink.function_id)
    for definition in PERMISSION_FUNCTIONS:
        pair = (permissions[definition.permission].id, functions[definition.name].id)
        if pair not in links:
            db.add(PermissionFunctionLink(permission_id=pair[0], function_id=pair[1]))
            links.add(pair)
            created["function_links"] += 1

    await db.commit()

    logger.info("RBAC catalog ensured", **created)
    return created
