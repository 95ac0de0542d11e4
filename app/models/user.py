"""
User models for actor identity and roles.

Identity and role are issued by the upstream auth layer; this service only
reads them.
"""

from pydantic import BaseModel, Field
from enum import Enum


class UserRole(str, Enum):
    """Roles recognised by the lifecycle engine."""
    CITIZEN = "CITIZEN"
    WORKER = "WORKER"
    ADMIN = "ADMIN"


class Actor(BaseModel):
    """The verified caller of an operation."""
    user_id: str = Field(..., min_length=1, description="Verified user ID")
    role: UserRole = Field(..., description="Verified role")

