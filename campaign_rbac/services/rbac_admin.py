"""
RBAC Admin Service
Administrative writes to the role, permission and function tables.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from campaign_rbac.core.exceptions import DuplicateEntity, EntityNotFound
from campaign_rbac.core.rbac import MAX_USER_ID, normalize_name, split_permission, validate_user_id
from campaign_rbac.models.rbac import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
    UserRole,
)
from campaign_rbac.repositories.base import CRUDBase, NamedCRUDBase
from campaign_rbac.repositories.rbac import (
    function_repository,
    permission_function_link_repository,
    permission_repository,
    role_permission_repository,
    role_repository,
    user_repository,
    user_role_repository,
)

logger = structlog.get_logger()

PairLookup = Callable[[], Awaitable[Optional[Any]]]


class RBACAdminService:
    async def _create_named(
        self,
        db: AsyncSession,
        repository: NamedCRUDBase,
        kind: str,
        values: dict[str, Any],
    ):
        name = values["name"]
        if await repository.get_by_name(db, name):
            raise DuplicateEntity(f"{kind.capitalize()} already exists: {name}", kind=kind, name=name)

        try:
            return await repository.create(db, obj_in=values)
        except IntegrityError as exc:
            raise DuplicateEntity(f"{kind.capitalize()} already exists: {name}", kind=kind, name=name) from exc

    async def _get_named_or_404(self, db: AsyncSession, repository: NamedCRUDBase, kind: str, name: Any):
        name = normalize_name(name, kind)
        entity = await repository.get_by_name(db, name)
        if not entity:
            raise EntityNotFound(f"{kind.capitalize()} not found: {name}", kind=kind, name=name)
        return entity

    async def _activate_pair(
        self,
        db: AsyncSession,
        repository: CRUDBase,
        lookup: PairLookup,
        values: dict[str, Any],
    ):
        """
        Insert a join row, reactivate it, or return it untouched if already active.

        A concurrent insert of the same pair trips the unique constraint; the
        loser rolls back and resolves to the winner's row.
        """
        existing = await lookup()
        if existing is not None:
            if existing.is_active:
                return existing
            existing.is_active = True
            if hasattr(existing, "assigned_at"):
                existing.assigned_at = datetime.now(timezone.utc)
            await db.commit()
            await db.refresh(existing)
            logger.info("Link reactivated", model=repository.model.__name__, id=existing.id)
            return existing

        try:
            return await repository.create(db, obj_in=values)
        except IntegrityError:
            logger.info("Concurrent link insert resolved to existing row", model=repository.model.__name__)
            row = await lookup()
            if row is None:
                raise
            if not row.is_active:
                return await self._activate_pair(db, repository, lookup, values)
            return row

    async def _deactivate_pair(self, db: AsyncSession, row: Optional[Any]) -> bool:
        if row is None or not row.is_active:
            return False
        row_id = row.id
        row.is_active = False
        await db.commit()
        logger.info("Link deactivated", model=type(row).__name__, id=row_id)
        return True

    async def _set_active(
        self,
        db: AsyncSession,
        repository: NamedCRUDBase,
        kind: str,
        name: str,
        is_active: bool,
    ):
        entity = await self._get_named_or_404(db, repository, kind, name)
        if entity.is_active != is_active:
            entity.is_active = is_active
            await db.commit()
            await db.refresh(entity)
            logger.info(f"{kind.capitalize()} status changed", name=entity.name, is_active=is_active)
        return entity

    # ── entities ──

    async def create_role(self, db: AsyncSession, name: str, description: Optional[str] = None) -> Role:
        name = normalize_name(name, "role")
        return await self._create_named(
            db, role_repository, "role", {"name": name, "description": description}
        )

    async def create_permission(
        self, db: AsyncSession, name: str, description: Optional[str] = None
    ) -> Permission:
        """The resource and action columns are derived from the "resource.action" name."""
        name = normalize_name(name, "permission")
        resource, action = split_permission(name)
        return await self._create_named(
            db,
            permission_repository,
            "permission",
            {"name": name, "resource": resource, "action": action, "description": description},
        )

    async def create_function(
        self,
        db: AsyncSession,
        name: str,
        description: Optional[str] = None,
        module: Optional[str] = None,
    ) -> PermissionFunction:
        name = normalize_name(name, "function")
        return await self._create_named(
            db,
            function_repository,
            "function",
            {"name": name, "description": description, "module": module},
        )

    async def set_role_active(self, db: AsyncSession, name: str, is_active: bool) -> Role:
        return await self._set_active(db, role_repository, "role", name, is_active)

    async def set_permission_active(self, db: AsyncSession, name: str, is_active: bool) -> Permission:
        return await self._set_active(db, permission_repository, "permission", name, is_active)

    async def set_function_active(self, db: AsyncSession, name: str, is_active: bool) -> PermissionFunction:
        return await self._set_active(db, function_repository, "function", name, is_active)

    # ── links ──

    async def assign_role(self, db: AsyncSession, user_id: Any, role_name: str) -> UserRole:
        uid = validate_user_id(user_id)
        if uid > MAX_USER_ID or not await user_repository.get(db, uid):
            raise EntityNotFound(f"User not found: {uid}", kind="user", user_id=uid)
        role = await self._get_named_or_404(db, role_repository, "role", role_name)
        role_id = role.id

        row = await self._activate_pair(
            db,
            user_role_repository,
            lambda: user_role_repository.get_pair(db, uid, role_id),
            {"user_id": uid, "role_id": role_id},
        )
        logger.info("Role assigned", user_id=uid, role=role_name)
        return row

    async def revoke_role(self, db: AsyncSession, user_id: Any, role_name: str) -> bool:
        uid = validate_user_id(user_id)
        role = await self._get_named_or_404(db, role_repository, "role", role_name)
        if uid > MAX_USER_ID:
            return False
        return await self._deactivate_pair(db, await user_role_repository.get_pair(db, uid, role.id))

    async def grant_permission(self, db: AsyncSession, role_name: str, permission_name: str) -> RolePermission:
        role = await self._get_named_or_404(db, role_repository, "role", role_name)
        permission = await self._get_named_or_404(db, permission_repository, "permission", permission_name)
        role_id, permission_id = role.id, permission.id

        row = await self._activate_pair(
            db,
            role_permission_repository,
            lambda: role_permission_repository.get_pair(db, role_id, permission_id),
            {"role_id": role_id, "permission_id": permission_id},
        )
        logger.info("Permission granted", role=role_name, permission=permission_name)
        return row

    async def revoke_permission(self, db: AsyncSession, role_name: str, permission_name: str) -> bool:
        role = await self._get_named_or_404(db, role_repository, "role", role_name)
        permission = await self._get_named_or_404(db, permission_repository, "permission", permission_name)
        return await self._deactivate_pair(
            db, await role_permission_repository.get_pair(db, role.id, permission.id)
        )

    async def link_function(
        self, db: AsyncSession, permission_name: str, function_name: str
    ) -> PermissionFunctionLink:
        permission = await self._get_named_or_404(db, permission_repository, "permission", permission_name)
        function = await self._get_named_or_404(db, function_repository, "function", function_name)
        permission_id, function_id = permission.id, function.id

        row = await self._activate_pair(
            db,
            permission_function_link_repository,
            lambda: permission_function_link_repository.get_pair(db, permission_id, function_id),
            {"permission_id": permission_id, "function_id": function_id},
        )
        logger.info("Function linked", permission=permission_name, function=function_name)
        return row

    async def unlink_function(self, db: AsyncSession, permission_name: str, function_name: str) -> bool:
        permission = await self._get_named_or_404(db, permission_repository, "permission", permission_name)
        function = await self._get_named_or_404(db, function_repository, "function", function_name)
        return await self._deactivate_pair(
            db, await permission_function_link_repository.get_pair(db, permission.id, function.id)
        )


rbac_admin_service = RBACAdminService()
