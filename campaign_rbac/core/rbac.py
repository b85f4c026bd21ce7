"""
RBAC helpers and canonical permission definitions for the campaign platform.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from campaign_rbac.core.exceptions import MalformedIdentifier


class UserType(str, Enum):
    EMPLOYEE = "employee"
    CLIENT = "client"
    CONTRACTOR = "contractor"


CRUD_ACTIONS: tuple[str, ...] = ("read", "create", "update", "delete")

MANAGED_RESOURCES: tuple[str, ...] = (
    "users",
    "companies",
    "campaigns",
    "roles",
)

EXTRA_PERMISSIONS: tuple[str, ...] = (
    "campaigns.assign",
    "campaign_images.read",
    "campaign_images.upload",
    "campaign_images.review",
    "campaign_images.delete",
    "utilities.migrate_passwords",
)

ALL_RBAC_PERMISSIONS: tuple[str, ...] = tuple(
    f"{resource}.{action}"
    for resource in MANAGED_RESOURCES
    for action in CRUD_ACTIONS
) + EXTRA_PERMISSIONS


@dataclass(frozen=True)
class FunctionDefinition:
    permission: str
    name: str
    description: str
    module: str


def _crud_functions(resource: str, noun: str, module: str) -> list[FunctionDefinition]:
    return [
        FunctionDefinition(f"{resource}.read", f"view_{noun}_list", f"Display list of {resource}", module),
        FunctionDefinition(f"{resource}.read", f"view_{noun}_details", f"View detailed {noun} information", module),
        FunctionDefinition(f"{resource}.create", f"create_{noun}_form", f"Show create {noun} form", module),
        FunctionDefinition(f"{resource}.create", f"save_new_{noun}", f"Save new {noun} to database", module),
        FunctionDefinition(f"{resource}.update", f"edit_{noun}_form", f"Show edit {noun} form", module),
        FunctionDefinition(f"{resource}.update", f"update_{noun}_data", f"Update {noun} information in database", module),
        FunctionDefinition(f"{resource}.delete", f"delete_{noun}_confirm", f"Show delete {noun} confirmation", module),
        FunctionDefinition(f"{resource}.delete", f"remove_{noun}_record", f"Remove {noun} from database", module),
    ]


PERMISSION_FUNCTIONS: tuple[FunctionDefinition, ...] = tuple(
    _crud_functions("users", "user", "user_management")
    + _crud_functions("companies", "company", "company_management")
    + _crud_functions("campaigns", "campaign", "campaign_management")
    + [
        FunctionDefinition(
            "campaigns.assign", "assign_contractor_to_campaign", "Assign contractors to campaigns", "campaign_management"
        ),
        FunctionDefinition("campaign_images.read", "view_campaign_images", "View campaign images", "campaign_images"),
        FunctionDefinition("campaign_images.upload", "upload_campaign_image", "Upload new campaign images", "campaign_images"),
        FunctionDefinition(
            "campaign_images.review", "review_campaign_image", "Review and approve/reject images", "campaign_images"
        ),
        FunctionDefinition("campaign_images.delete", "delete_campaign_image", "Delete campaign images", "campaign_images"),
    ]
    + _crud_functions("roles", "role", "role_management")
    + [
        FunctionDefinition(
            "utilities.migrate_passwords",
            "migrate_user_passwords",
            "Migrate plaintext passwords to hashed",
            "system_utilities",
        ),
    ]
)


DEFAULT_ROLES: dict[str, dict[str, Any]] = {
    "employee": {
        "description": "Employee with full access",
        "permissions": ALL_RBAC_PERMISSIONS,
    },
    "limited_employee": {
        "description": "Employee without delete or utility access",
        "permissions": tuple(
            p for p in ALL_RBAC_PERMISSIONS
            if not p.endswith(".delete") and not p.startswith("utilities.")
        ),
    },
    "basic_employee": {
        "description": "Read-only employee",
        "permissions": ("users.read", "companies.read", "campaigns.read", "campaign_images.read"),
    },
    "client": {
        "description": "Client managing its own campaigns",
        "permissions": (
            "campaigns.read",
            "campaigns.create",
            "campaigns.update",
            "campaign_images.read",
            "campaign_images.review",
        ),
    },
    "contractor": {
        "description": "Contractor executing assigned campaigns",
        "permissions": ("campaigns.read", "campaign_images.read", "campaign_images.upload"),
    },
}


# Upper bound of the Integer primary key; no stored user can have a larger id
MAX_USER_ID = 2**31 - 1


def normalize_name(name: Any, kind: str = "name") -> str:
    """Strip a role/permission/function name; blank or non-string names are rejected."""
    if not isinstance(name, str) or not name.strip():
        raise MalformedIdentifier(f"Invalid {kind}: {name!r}", kind=kind)
    return name.strip()


def normalize_names(names: Any, kind: str = "name") -> list[str]:
    if isinstance(names, str):
        raise MalformedIdentifier(f"Expected a collection of {kind}s, got a string", kind=kind)
    return [normalize_name(name, kind) for name in names]


def split_permission(permission: str) -> tuple[str, str]:
    """Split "resource.action" into its parts."""
    permission = normalize_name(permission, "permission")
    resource, sep, action = permission.partition(".")
    if not sep or not resource or not action:
        raise MalformedIdentifier(
            f"Permission must follow 'resource.action': {permission!r}",
            kind="permission",
        )
    return resource, action


def validate_user_id(user_id: Any) -> int:
    """
    Coerce a user identifier to a positive int.

    Accepts ints and decimal strings (token subjects). Booleans, blanks,
    non-numeric values and anything <= 0 raise MalformedIdentifier.
    """
    if isinstance(user_id, bool):
        raise MalformedIdentifier(f"Invalid user identifier: {user_id!r}", kind="user_id")

    if isinstance(user_id, int):
        value = user_id
    elif isinstance(user_id, str) and user_id.strip():
        try:
            value = int(user_id.strip())
        except ValueError:
            raise MalformedIdentifier(f"Invalid user identifier: {user_id!r}", kind="user_id") from None
    else:
        raise MalformedIdentifier(f"Invalid user identifier: {user_id!r}", kind="user_id")

    if value <= 0:
        raise MalformedIdentifier(f"User identifier must be positive: {user_id!r}", kind="user_id")
    return value
