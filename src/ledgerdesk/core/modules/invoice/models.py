from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.utils import now


class InvoiceStatus(StrEnum):
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    CANCELLED = "Cancelled"


# Invoices that can still receive payments
OPEN_STATUSES = (InvoiceStatus.UNPAID, InvoiceStatus.PARTIALLY_PAID)


class PaymentMethod(StrEnum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CHEQUE = "cheque"
    OTHER = "other"


class InvoiceItem(BaseModel):
    """Invoice line. total is derived and stored for reporting."""

    description: str = Field(..., min_length=1, description="What is being billed")
    quantity: float = Field(..., gt=0, description="Quantity")
    price: float = Field(..., ge=0, description="Unit price")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> float:
        return round(self.quantity * self.price, 2)


class Invoice(MongoModel):
    """Invoice for a customer. invoice_id is allocated from the invoice counter (INV0001, ...)."""

    invoice_id: str
    customer_id: str
    customer_name: str
    items: list[InvoiceItem]
    tax_rate: float = 0  # Percent
    sub_total: float
    tax_amount: float
    total_amount: float
    amount_paid: float = 0
    status: InvoiceStatus = InvoiceStatus.UNPAID
    issue_date: datetime = Field(default_factory=now)
    due_date: datetime | None = None
    notes: str = ""
    created_by: UUID
    created_at: datetime = Field(default_factory=now)

    @property
    def balance(self) -> float:
        return round(self.total_amount - self.amount_paid, 2)


class InvoiceCreate(BaseModel):
    """Invoice fields provided by the user."""

    customer_id: str = Field(..., description="Customer the invoice is billed to, e.g. CT12")
    items: list[InvoiceItem] = Field(..., description="Line items (at least one)")
    tax_rate: float = Field(0, ge=0, le=100, description="Tax rate in percent")
    issue_date: datetime | None = Field(None, description="Issue date (defaults to now)")
    due_date: datetime | None = Field(None, description="Payment due date")
    notes: str = Field("", description="Free-form notes printed on the invoice")


class Payment(MongoModel):
    """Payment received against an invoice."""

    invoice_id: str
    amount: float
    method: PaymentMethod = PaymentMethod.CASH
    reference: str = ""  # Transaction or cheque number
    paid_at: datetime = Field(default_factory=now)
    recorded_by: UUID
    created_at: datetime = Field(default_factory=now)


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0, description="Amount received")
    method: PaymentMethod = Field(PaymentMethod.CASH, description="Payment method")
    reference: str = Field("", description="Transaction or cheque number")
    paid_at: datetime | None = Field(None, description="When the payment was received (defaults to now)")


class InvoiceTotals(BaseModel):
    sub_total: float
    tax_amount: float
    total_amount: float


def format_invoice_id(number: int) -> str:
    return f"INV{number:04d}"


def compute_totals(items: list[InvoiceItem], tax_rate: float) -> InvoiceTotals:
    """Sum line totals and apply the tax rate, rounding to cents."""
    sub_total = round(sum(item.total for item in items), 2)
    tax_amount = round(sub_total * tax_rate / 100, 2)
    return InvoiceTotals(sub_total=sub_total, tax_amount=tax_amount, total_amount=round(sub_total + tax_amount, 2))
