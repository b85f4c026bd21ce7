"""
Base Pydantic Schemas
Common schemas and base classes for response models
"""

from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
        use_enum_values=True
    )


class ErrorResponse(BaseModel):
    """Error envelope returned by the exception handlers"""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human readable error message")
    code: str = Field(..., description="Stable machine readable error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
