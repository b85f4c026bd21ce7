"""
RBAC Models
Roles, permissions, permission functions and the join rows linking them
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from campaign_rbac.models.base import ActiveFlagMixin, BaseModel


class Role(BaseModel, ActiveFlagMixin):
    """Named group of permissions assignable to users"""
    __tablename__ = "roles"

    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Role(name='{self.name}', is_active={self.is_active})>"


class Permission(BaseModel, ActiveFlagMixin):
    """Capability named 'resource.action', granted through roles"""
    __tablename__ = "permissions"

    name = Column(String(100), nullable=False, unique=True, index=True)
    resource = Column(String(50), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Permission(name='{self.name}', is_active={self.is_active})>"


class PermissionFunction(BaseModel, ActiveFlagMixin):
    """Fine-grained UI/API capability unlocked by holding a permission"""
    __tablename__ = "permission_functions"

    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(500), nullable=True)
    module = Column(String(100), nullable=True, index=True)

    def __repr__(self):
        return f"<PermissionFunction(name='{self.name}', module='{self.module}')>"


class UserRole(BaseModel, ActiveFlagMixin):
    """User to role assignment"""
    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )


class RolePermission(BaseModel, ActiveFlagMixin):
    """Role to permission grant"""
    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )


class PermissionFunctionLink(BaseModel, ActiveFlagMixin):
    """Permission to function mapping"""
    __tablename__ = "permission_function_links"

    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True)
    function_id = Column(
        Integer,
        ForeignKey("permission_functions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("permission_id", "function_id", name="uq_permission_function_links_pair"),
    )
