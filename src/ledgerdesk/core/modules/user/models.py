from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.utils import now


class UserType(StrEnum):
    """Role stored on a user profile."""

    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"
    VIP = "vip"
    WHOLESALE = "wholesale"
    DEVELOPER = "developer"


class User(MongoModel):
    """User profile with credentials. The id is the principal's uid."""

    email: str  # Stored lowercase, unique
    display_name: str = ""
    password_hash: str  # bcrypt hash
    usertype: UserType = UserType.CUSTOMER  # Self-registered accounts start as customers
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    display_name: str = Field(..., description="Display name")
    usertype: UserType = Field(..., description="Role of the user")
    created_at: datetime = Field(..., description="Registration timestamp")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            usertype=user.usertype,
            created_at=user.created_at,
        )
