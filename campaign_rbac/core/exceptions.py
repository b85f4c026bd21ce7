"""
RBAC error taxonomy.

Every error carries a stable ``code`` so the HTTP layer can map it to a
status without inspecting messages.
"""

from __future__ import annotations

from typing import Any


class RBACError(Exception):
    """Base error for the RBAC layer."""

    code = "RBAC_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)


class StoreUnavailable(RBACError):
    """The permission store could not be reached. Transient; the caller may retry."""

    code = "STORE_UNAVAILABLE"


class MalformedIdentifier(RBACError):
    """An empty, non-positive or otherwise unusable identifier was supplied."""

    code = "MALFORMED_IDENTIFIER"


class EntityNotFound(RBACError):
    code = "NOT_FOUND"


class DuplicateEntity(RBACError):
    code = "DUPLICATE_ENTRY"


__all__ = [
    "RBACError",
    "StoreUnavailable",
    "MalformedIdentifier",
    "EntityNotFound",
    "DuplicateEntity",
]
