"""
Authorization checks built on the permission resolver.

These are the boolean gates request-handling code consumes. They never
raise for "no access"; only malformed input and store failures raise.
"""

from __future__ import annotations

from typing import Any, Iterable

import structlog

from campaign_rbac.core.permission_resolver import PermissionResolver
from campaign_rbac.core.rbac import normalize_name, normalize_names, validate_user_id
from campaign_rbac.schemas.rbac import AccessSummary, PermissionCheckResult

logger = structlog.get_logger()


class Authorizer:
    def __init__(self, resolver: PermissionResolver) -> None:
        self.resolver = resolver

    async def can(self, user_id: Any, permission_name: str) -> bool:
        permission = normalize_name(permission_name, "permission")
        return permission in await self.resolver.effective_permissions(user_id)

    async def can_invoke(self, user_id: Any, function_name: str) -> bool:
        function = normalize_name(function_name, "function")
        return function in await self.resolver.effective_functions(user_id)

    async def has_role(self, user_id: Any, role_name: str) -> bool:
        role = normalize_name(role_name, "role")
        return role in await self.resolver.effective_roles(user_id)

    async def check_many(self, user_id: Any, permission_names: Iterable[str]) -> dict[str, bool]:
        """Resolve once and answer several permission checks."""
        permissions = normalize_names(permission_names, "permission")
        effective = await self.resolver.effective_permissions(user_id)
        return {permission: permission in effective for permission in permissions}

    async def can_any(self, user_id: Any, permission_names: Iterable[str]) -> bool:
        return any((await self.check_many(user_id, permission_names)).values())

    async def can_all(self, user_id: Any, permission_names: Iterable[str]) -> bool:
        # An empty requirement list is satisfied
        return all((await self.check_many(user_id, permission_names)).values())

    async def check(self, user_id: Any, permission_name: str) -> PermissionCheckResult:
        uid = validate_user_id(user_id)
        permission = normalize_name(permission_name, "permission")
        allowed = await self.can(uid, permission)
        logger.debug("Permission checked", user_id=uid, permission=permission, allowed=allowed)
        return PermissionCheckResult(user_id=uid, permission=permission, allowed=allowed)

    async def describe(self, user_id: Any) -> AccessSummary:
        uid = validate_user_id(user_id)
        roles, permissions, functions = await self.resolver.resolve(uid)
        return AccessSummary(
            user_id=uid,
            roles=sorted(roles),
            permissions=sorted(permissions),
            functions=sorted(functions),
        )
