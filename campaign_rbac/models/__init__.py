"""
SQLAlchemy Models Package
Campaign RBAC Database Models
"""

from campaign_rbac.models.user import Company, User
from campaign_rbac.models.rbac import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
    UserRole,
)

__all__ = [
    "Company",
    "User",
    "Role",
    "Permission",
    "PermissionFunction",
    "UserRole",
    "RolePermission",
    "PermissionFunctionLink",
]
