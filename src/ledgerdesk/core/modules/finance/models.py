from datetime import datetime

from pydantic import BaseModel, Field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.core.modules.invoice.models import PaymentMethod
from ledgerdesk.utils import now


class Income(MongoModel):
    """Income entry (sales outside invoices, interest, grants...)."""

    amount: float
    source: str
    category: str
    date: datetime
    description: str = ""
    created_at: datetime = Field(default_factory=now)


class Expense(MongoModel):
    """Expense entry."""

    amount: float
    payee: str
    category: str
    date: datetime
    description: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    created_at: datetime = Field(default_factory=now)


class IncomeCreate(BaseModel):
    amount: float = Field(..., gt=0, description="Amount received")
    source: str = Field(..., min_length=1, description="Who or what the income came from")
    category: str = Field(..., min_length=1, description="Category used for reporting")
    date: datetime = Field(..., description="Date of the income")
    description: str = Field("", description="Optional notes")


class ExpenseCreate(BaseModel):
    amount: float = Field(..., gt=0, description="Amount spent")
    payee: str = Field(..., min_length=1, description="Who was paid")
    category: str = Field(..., min_length=1, description="Category used for reporting")
    date: datetime = Field(..., description="Date of the expense")
    payment_method: PaymentMethod = Field(..., description="How the expense was paid")
    description: str = Field("", description="Optional notes")


class CategoryTotal(BaseModel):
    category: str = Field(..., description="Category name")
    total: float = Field(..., description="Sum of amounts in the category")


class FinancialSummary(BaseModel):
    """Income versus expenses over a period."""

    start: datetime | None = Field(None, description="Inclusive start of the period")
    end: datetime | None = Field(None, description="Exclusive end of the period")
    total_income: float = Field(..., description="Sum of income")
    total_expenses: float = Field(..., description="Sum of expenses")
    payroll_expenses: float = Field(0, description="Net pay of salary payments made")
    net_profit: float = Field(..., description="Income minus expenses and payroll")
    income_by_category: list[CategoryTotal] = Field(..., description="Income per category, largest first")
    expenses_by_category: list[CategoryTotal] = Field(..., description="Expenses per category, largest first")


class DashboardStats(BaseModel):
    """Headline numbers for the back-office home page."""

    customers: int = Field(..., description="Number of customers")
    active_staff: int = Field(..., description="Number of active staff members")
    invoices: int = Field(..., description="Number of invoices")
    unpaid_invoices: int = Field(..., description="Invoices with no payment yet")
    outstanding_balance: float = Field(..., description="Amount still owed on open invoices")
    payments_received: float = Field(..., description="Total of all invoice payments")
