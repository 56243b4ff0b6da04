"""Named counters for human-readable sequential record identifiers."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class CounterName(StrEnum):
    """Counters used by the back-office record types."""

    CUSTOMER = "customerCounter"
    STAFF = "staffCounter"
    INVOICE = "invoiceCounter"


class Counter(BaseModel):
    """Persisted integer per counter name.

    Stored as {"_id": name, "value": n}. Only ever changed through an atomic $inc,
    so value never decreases and grows by exactly one per allocation.
    """

    name: str = Field(alias="_id", serialization_alias="name")
    value: int = 0  # Last allocated number; next allocation returns value + 1

    model_config = ConfigDict(populate_by_name=True)
