"""
User and Company Models
Tenant and account rows the RBAC tables hang off
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Enum as SAEnum
from campaign_rbac.core.rbac import UserType
from campaign_rbac.models.base import BaseModel


class Company(BaseModel):
    """Tenant company owning users and campaigns"""
    __tablename__ = "companies"

    name = Column(String(255), nullable=False, unique=True)

    def __repr__(self):
        return f"<Company(name='{self.name}')>"


class User(BaseModel):
    """Application account; provisioned outside the RBAC layer"""
    __tablename__ = "users"

    username = Column(String(100), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    company_id = Column(
        Integer,
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_type = Column(
        SAEnum(UserType, name="user_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserType.EMPLOYEE,
    )

    def __repr__(self):
        return f"<User(username='{self.username}', user_type='{self.user_type}')>"
