"""
Permission resolver.

Computes the effective roles, permissions and functions of a user by walking
user -> role -> permission -> function through the PermissionStore. Every
call reads fresh state; nothing is cached between calls.
"""

from __future__ import annotations

from typing import Any

import structlog

from campaign_rbac.core.rbac import MAX_USER_ID, validate_user_id
from campaign_rbac.repositories.permission_store import PermissionStore

logger = structlog.get_logger()


class PermissionResolver:
    def __init__(self, store: PermissionStore) -> None:
        self.store = store

    async def effective_roles(self, user_id: Any) -> frozenset[str]:
        uid = validate_user_id(user_id)
        if uid > MAX_USER_ID:
            logger.debug("User id beyond stored range, treating as unknown", user_id=uid)
            return frozenset()
        return frozenset(await self.store.roles_for_user(uid))

    async def effective_permissions(self, user_id: Any) -> frozenset[str]:
        """
        Union of the active permissions granted by every active role of the user.

        A user without active roles (including an unknown user) gets an empty set.
        """
        roles = await self.effective_roles(user_id)
        if not roles:
            logger.debug("User holds no active roles", user_id=user_id)
            return frozenset()

        permissions = frozenset(await self.store.permissions_for_roles(roles))
        logger.debug(
            "Effective permissions resolved",
            user_id=user_id,
            roles=sorted(roles),
            count=len(permissions),
        )
        return permissions

    async def effective_functions(self, user_id: Any) -> frozenset[str]:
        permissions = await self.effective_permissions(user_id)
        if not permissions:
            return frozenset()
        return frozenset(await self.store.functions_for_permissions(permissions))

    async def resolve(self, user_id: Any) -> tuple[frozenset[str], frozenset[str], frozenset[str]]:
        """Roles, permissions and functions from a single walk of the chain."""
        roles = await self.effective_roles(user_id)
        permissions = frozenset(await self.store.permissions_for_roles(roles)) if roles else frozenset()
        functions = (
            frozenset(await self.store.functions_for_permissions(permissions)) if permissions else frozenset()
        )
        return roles, permissions, functions
