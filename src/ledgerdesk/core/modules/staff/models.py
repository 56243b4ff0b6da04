from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.core.modules.customer.models import Address
from ledgerdesk.utils import now


class StaffStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Staff(MongoModel):
    """Staff member. staff_id is allocated from the staff counter (STAFF0001, ...)."""

    staff_id: str
    name: str
    role: str = ""
    email: str = ""
    phone: str = ""
    salary: float = 0  # Monthly salary
    status: StaffStatus = StaffStatus.ACTIVE
    address: Address = Field(default_factory=Address)
    joining_date: datetime = Field(default_factory=now)
    created_at: datetime = Field(default_factory=now)


class StaffCreate(BaseModel):
    """Staff fields provided by the user."""

    name: str = Field(..., description="Full name")
    role: str = Field("", description="Job title")
    email: str = Field("", description="Email address")
    phone: str = Field("", description="Phone number")
    salary: float = Field(0, ge=0, description="Monthly salary")
    address: Address = Field(default_factory=Address, description="Postal address")
    joining_date: datetime | None = Field(None, description="Joining date (defaults to now)")


def format_staff_id(number: int) -> str:
    return f"STAFF{number:04d}"
