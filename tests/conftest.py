"""
Shared fixtures for the campaign RBAC test suite.
"""

from typing import Dict, Iterable, Optional, Set

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import campaign_rbac.models  # noqa: F401
from campaign_rbac.core.database import Base
from campaign_rbac.core.rbac import UserType, split_permission
from campaign_rbac.models import (
    Permission,
    PermissionFunction,
    PermissionFunctionLink,
    Role,
    RolePermission,
    User,
    UserRole,
)
from campaign_rbac.repositories.permission_store import PermissionStore


# ==================== Database ====================

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


class RBACSeeder:
    """Writes RBAC rows directly, bypassing the admin service"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, username: str = "alice", user_type: UserType = UserType.EMPLOYEE) -> User:
        return await self._save(User(username=username, hashed_password="not-a-real-hash", user_type=user_type))

    async def role(self, name: str, is_active: bool = True) -> Role:
        return await self._save(Role(name=name, is_active=is_active))

    async def permission(self, name: str, is_active: bool = True) -> Permission:
        resource, action = split_permission(name)
        return await self._save(Permission(name=name, resource=resource, action=action, is_active=is_active))

    async def function(self, name: str, is_active: bool = True) -> PermissionFunction:
        return await self._save(PermissionFunction(name=name, is_active=is_active))

    async def assign(self, user: User, role: Role, is_active: bool = True) -> UserRole:
        return await self._save(UserRole(user_id=user.id, role_id=role.id, is_active=is_active))

    async def grant(self, role: Role, permission: Permission, is_active: bool = True) -> RolePermission:
        return await self._save(RolePermission(role_id=role.id, permission_id=permission.id, is_active=is_active))

    async def link(
        self, permission: Permission, function: PermissionFunction, is_active: bool = True
    ) -> PermissionFunctionLink:
        return await self._save(
            PermissionFunctionLink(permission_id=permission.id, function_id=function.id, is_active=is_active)
        )

    async def set_active(self, obj, is_active: bool):
        obj.is_active = is_active
        await self.db.commit()
        return obj


@pytest.fixture
def seed(db):
    return RBACSeeder(db)


# ==================== In-memory store ====================

class InMemoryPermissionStore(PermissionStore):
    """
    Store over plain dicts holding only active links.

    Optionally raises ``error`` from every query to simulate an outage.
    """

    def __init__(
        self,
        user_roles: Optional[Dict[int, Set[str]]] = None,
        role_permissions: Optional[Dict[str, Set[str]]] = None,
        permission_functions: Optional[Dict[str, Set[str]]] = None,
        error: Optional[Exception] = None,
    ):
        self.user_roles = user_roles or {}
        self.role_permissions = role_permissions or {}
        self.permission_functions = permission_functions or {}
        self.error = error
        self.calls = []

    def _record(self, operation: str):
        self.calls.append(operation)
        if self.error is not None:
            raise self.error

    async def roles_for_user(self, user_id: int) -> set:
        self._record("roles_for_user")
        return set(self.user_roles.get(user_id, set()))

    async def permissions_for_roles(self, role_names: Iterable[str]) -> set:
        self._record("permissions_for_roles")
        return {p for role in role_names for p in self.role_permissions.get(role, set())}

    async def functions_for_permissions(self, permission_names: Iterable[str]) -> set:
        self._record("functions_for_permissions")
        return {f for p in permission_names for f in self.permission_functions.get(p, set())}


@pytest.fixture
def employee_store():
    """User 1 holds employee; user 2 holds client; user 3 holds nothing"""
    return InMemoryPermissionStore(
        user_roles={1: {"employee"}, 2: {"client"}},
        role_permissions={
            "employee": {"users.read", "campaigns.read"},
            "client": {"campaigns.read", "campaigns.create"},
        },
        permission_functions={
            "users.read": {"view_user_list"},
            "campaigns.create": {"create_campaign_form", "save_new_campaign"},
        },
    )
