"""
FastAPI Dependencies
Caller identification and permission gates for request handlers
"""

from typing import Optional

from fastapi import Depends, HTTPException, status, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from campaign_rbac.core.authorization import Authorizer
from campaign_rbac.core.database import get_db
from campaign_rbac.core.exceptions import MalformedIdentifier
from campaign_rbac.core.permission_resolver import PermissionResolver
from campaign_rbac.core.rbac import normalize_name, normalize_names, validate_user_id
from campaign_rbac.core.security import verify_token
from campaign_rbac.repositories.permission_store import SQLAlchemyPermissionStore
from campaign_rbac.schemas.rbac import AccessSummary

logger = structlog.get_logger()

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> int:
    """
    Identify the caller from the Bearer token

    The user row is not loaded: an unknown user simply resolves to no access.

    Raises:
        HTTPException: 401 if the token is missing, invalid or its subject
            is not a positive integer
    """
    if not credentials:
        logger.warning("Missing authentication credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = verify_token(credentials.credentials, token_type="access")
    try:
        return validate_user_id(subject)
    except MalformedIdentifier:
        logger.warning("Token subject is not a user id", subject=subject)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_permission_resolver(db: AsyncSession = Depends(get_db)) -> PermissionResolver:
    """Request-scoped resolver reading through the request's session"""
    return PermissionResolver(SQLAlchemyPermissionStore(db))


def get_authorizer(resolver: PermissionResolver = Depends(get_permission_resolver)) -> Authorizer:
    return Authorizer(resolver)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_permission(permission: str):
    """
    Dependency factory for a single required permission

    Args:
        permission: Permission name, e.g. "users.read"

    Returns:
        Dependency returning the caller's user ID when allowed
    """
    permission = normalize_name(permission, "permission")

    async def permission_checker(
        user_id: int = Depends(get_current_user_id),
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> int:
        if not await authorizer.can(user_id, permission):
            logger.warning("User lacks required permission", user_id=user_id, required=permission)
            raise _forbidden(f"Permission required: {permission}")

        logger.debug("Permission check passed", user_id=user_id, permission=permission)
        return user_id

    return permission_checker


def require_permissions(permissions: list[str]):
    """
    Dependency factory requiring every permission in the list

    Args:
        permissions: Required permission names

    Returns:
        Dependency returning the caller's user ID when allowed
    """
    required = normalize_names(permissions, "permission")

    async def permissions_checker(
        user_id: int = Depends(get_current_user_id),
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> int:
        results = await authorizer.check_many(user_id, required)
        missing = [permission for permission, allowed in results.items() if not allowed]
        if missing:
            logger.warning("User lacks required permissions", user_id=user_id, missing=missing)
            raise _forbidden(f"Permissions required: {', '.join(missing)}")
        return user_id

    return permissions_checker


def require_any_permission(permissions: list[str]):
    """
    Dependency factory requiring at least one permission from the list
    """
    candidates = normalize_names(permissions, "permission")

    async def any_permission_checker(
        user_id: int = Depends(get_current_user_id),
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> int:
        if not await authorizer.can_any(user_id, candidates):
            logger.warning("User lacks all candidate permissions", user_id=user_id, candidates=candidates)
            raise _forbidden(f"One of these permissions required: {', '.join(candidates)}")
        return user_id

    return any_permission_checker


def require_function(function: str):
    """
    Dependency factory gating on a permission function, e.g. "view_user_list"
    """
    function = normalize_name(function, "function")

    async def function_checker(
        user_id: int = Depends(get_current_user_id),
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> int:
        if not await authorizer.can_invoke(user_id, function):
            logger.warning("User cannot invoke function", user_id=user_id, function=function)
            raise _forbidden(f"Function not permitted: {function}")
        return user_id

    return function_checker


def require_role(role: str):
    """
    Dependency factory for a required active role
    """
    role = normalize_name(role, "role")

    async def role_checker(
        user_id: int = Depends(get_current_user_id),
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> int:
        if not await authorizer.has_role(user_id, role):
            logger.warning("User lacks required role", user_id=user_id, required_role=role)
            raise _forbidden(f"Role required: {role}")
        return user_id

    return role_checker


async def get_access_summary(
    user_id: int = Depends(get_current_user_id),
    authorizer: Authorizer = Depends(get_authorizer),
) -> AccessSummary:
    """Resolved roles, permissions and functions of the caller"""
    return await authorizer.describe(user_id)
