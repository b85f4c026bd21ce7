"""
Base Model Classes
Common fields and functionality for all models
"""

from sqlalchemy import Column, DateTime, Integer, Boolean, true
from sqlalchemy.sql import func
from campaign_rbac.core.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class IntegerIDMixin:
    """Mixin for an auto-incrementing integer primary key"""
    id = Column(Integer, primary_key=True, autoincrement=True)


class ActiveFlagMixin:
    """Mixin for the per-row flag gating participation in permission resolution"""
    is_active = Column(Boolean, default=True, server_default=true(), nullable=False, index=True)


class BaseModel(Base, IntegerIDMixin, TimestampMixin):
    """Base model with common fields"""
    __abstract__ = True
