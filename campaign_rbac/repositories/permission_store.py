"""
Permission Store
Read-only queries the permission resolver depends on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Select

from campaign_rbac.core.exceptions import StoreUnavailable
from campaign_rbac.models.rbac import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
    UserRole,
)

logger = structlog.get_logger()

# Failures meaning "could not talk to the database", as opposed to bad SQL
CONNECTIVITY_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    OSError,
)


class PermissionStore(ABC):
    """Query contract between the resolver and whatever holds the RBAC tables."""

    @abstractmethod
    async def roles_for_user(self, user_id: int) -> set[str]:
        """Names of active roles reached through active user_roles rows."""
        raise NotImplementedError

    @abstractmethod
    async def permissions_for_roles(self, role_names: Iterable[str]) -> set[str]:
        """Names of active permissions granted to the roles through active grants."""
        raise NotImplementedError

    @abstractmethod
    async def functions_for_permissions(self, permission_names: Iterable[str]) -> set[str]:
        """Names of active functions linked to the permissions through active links."""
        raise NotImplementedError


class SQLAlchemyPermissionStore(PermissionStore):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def roles_for_user(self, user_id: int) -> set[str]:
        query = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active == True,
                Role.is_active == True,
            )
            .distinct()
        )
        names = await self._fetch_names(query, operation="roles_for_user")
        logger.debug("Roles loaded", user_id=user_id, count=len(names))
        return names

    async def permissions_for_roles(self, role_names: Iterable[str]) -> set[str]:
        role_names = sorted(set(role_names))
        if not role_names:
            return set()

        query = (
            select(Permission.name)
            .select_from(RolePermission)
            .join(Role, RolePermission.role_id == Role.id)
            .join(Permission, RolePermission.permission_id == Permission.id)
            .where(
                Role.name.in_(role_names),
                Role.is_active == True,
                RolePermission.is_active == True,
                Permission.is_active == True,
            )
            .distinct()
        )
        return await self._fetch_names(query, operation="permissions_for_roles")

    async def functions_for_permissions(self, permission_names: Iterable[str]) -> set[str]:
        permission_names = sorted(set(permission_names))
        if not permission_names:
            return set()

        query = (
            select(PermissionFunction.name)
            .select_from(PermissionFunctionLink)
            .join(Permission, PermissionFunctionLink.permission_id == Permission.id)
            .join(PermissionFunction, PermissionFunctionLink.function_id == PermissionFunction.id)
            .where(
                Permission.name.in_(permission_names),
                Permission.is_active == True,
                PermissionFunctionLink.is_active == True,
                PermissionFunction.is_active == True,
            )
            .distinct()
        )
        return await self._fetch_names(query, operation="functions_for_permissions")

    async def _fetch_names(self, query: Select, *, operation: str) -> set[str]:
        try:
            result = await self.db.execute(query)
        except CONNECTIVITY_ERRORS as exc:
            logger.error("Permission store unavailable", operation=operation, error=str(exc))
            raise StoreUnavailable(
                f"Permission store unavailable during {operation}",
                operation=operation,
            ) from exc
        return set(result.scalars().all())
