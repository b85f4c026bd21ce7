"""
RBAC Schemas
Response models describing a user's resolved access
"""

from typing import List
from pydantic import Field

from campaign_rbac.schemas.base import BaseSchema


class AccessSummary(BaseSchema):
    """Everything a user can do, resolved through active links only"""
    user_id: int = Field(..., gt=0, description="User identifier")
    roles: List[str] = Field(default_factory=list, description="Active role names")
    permissions: List[str] = Field(default_factory=list, description="Effective permission names")
    functions: List[str] = Field(default_factory=list, description="Effective function names")


class PermissionCheckResult(BaseSchema):
    """Outcome of a single permission check"""
    user_id: int = Field(..., gt=0, description="User identifier")
    permission: str = Field(..., min_length=1, description="Permission that was checked")
    allowed: bool = Field(..., description="Whether the user holds the permission")
