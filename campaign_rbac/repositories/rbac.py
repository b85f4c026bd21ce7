"""
RBAC Repositories
Lookups used by the administrative service.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campaign_rbac.models.rbac import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
    UserRole,
)
from campaign_rbac.models.user import User
from campaign_rbac.repositories.base import CRUDBase, NamedCRUDBase


class UserRepository(CRUDBase[User]):
    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username.strip()))
        return result.scalar_one_or_none()


class UserRoleRepository(CRUDBase[UserRole]):
    async def get_pair(self, db: AsyncSession, user_id: int, role_id: int) -> Optional[UserRole]:
        result = await db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()


class RolePermissionRepository(CRUDBase[RolePermission]):
    async def get_pair(self, db: AsyncSession, role_id: int, permission_id: int) -> Optional[RolePermission]:
        result = await db.execute(
            select(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
        )
        return result.scalar_one_or_none()


class PermissionFunctionLinkRepository(CRUDBase[PermissionFunctionLink]):
    async def get_pair(
        self, db: AsyncSession, permission_id: int, function_id: int
    ) -> Optional[PermissionFunctionLink]:
        result = await db.execute(
            select(PermissionFunctionLink).where(
                PermissionFunctionLink.permission_id == permission_id,
                PermissionFunctionLink.function_id == function_id,
            )
        )
        return result.scalar_one_or_none()


user_repository = UserRepository(User)
role_repository = NamedCRUDBase(Role)
permission_repository = NamedCRUDBase(Permission)
function_repository = NamedCRUDBase(PermissionFunction)
user_role_repository = UserRoleRepository(UserRole)
role_permission_repository = RolePermissionRepository(RolePermission)
permission_function_link_repository = PermissionFunctionLinkRepository(PermissionFunctionLink)
