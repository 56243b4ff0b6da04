from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.utils import now


class ContactType(StrEnum):
    """Which contact details are required for a customer."""

    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class CustomerType(StrEnum):
    CUSTOMER = "customer"
    VIP = "vip"
    WHOLESALE = "wholesale"


class Address(BaseModel):
    country: str = "India"
    state: str = ""
    district: str = ""
    city: str = ""
    pincode: str = ""


class Customer(MongoModel):
    """Customer record. customer_id is allocated from the customer counter (CT1, CT2, ...)."""

    customer_id: str
    first_name: str
    last_name: str = ""
    email: str = ""
    phone: str = ""
    contact_type: ContactType = ContactType.BOTH
    address: Address = Field(default_factory=Address)
    usertype: CustomerType = CustomerType.CUSTOMER
    search_terms: list[str] = Field(default_factory=list)  # Lowercased tokens for search
    created_at: datetime = Field(default_factory=now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CustomerCreate(BaseModel):
    """Customer fields provided by the user."""

    first_name: str = Field(..., description="First name (required)")
    last_name: str = Field("", description="Last name")
    email: str = Field("", description="Email address (required for 'email' and 'both' contact types)")
    phone: str = Field("", description="Phone number (required for 'phone' and 'both' contact types)")
    contact_type: ContactType = Field(ContactType.BOTH, description="Preferred contact method")
    address: Address = Field(default_factory=Address, description="Postal address")
    usertype: CustomerType = Field(CustomerType.CUSTOMER, description="Customer tier")


def format_customer_id(number: int) -> str:
    return f"CT{number}"
