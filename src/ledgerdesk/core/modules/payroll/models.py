from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from ledgerdesk.core.db import MongoModel
from ledgerdesk.utils import now


class PayrollStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Allowances(BaseModel):
    housing: float = Field(0, ge=0, description="Housing allowance")
    transport: float = Field(0, ge=0, description="Transport allowance")
    medical: float = Field(0, ge=0, description="Medical allowance")
    other: float = Field(0, ge=0, description="Other allowances")

    @property
    def total(self) -> float:
        return round(self.housing + self.transport + self.medical + self.other, 2)


class Deductions(BaseModel):
    tax: float = Field(0, ge=0, description="Income tax")
    insurance: float = Field(0, ge=0, description="Insurance contribution")
    pension: float = Field(0, ge=0, description="Pension contribution")
    other: float = Field(0, ge=0, description="Other deductions")

    @property
    def total(self) -> float:
        return round(self.tax + self.insurance + self.pension + self.other, 2)


class SalaryRecord(MongoModel):
    """Salary structure of a staff member from effective_date on. net_salary is stored for reporting."""

    staff_id: str
    employee_name: str
    position: str
    department: str
    base_salary: float
    allowances: Allowances = Field(default_factory=Allowances)
    deductions: Deductions = Field(default_factory=Deductions)
    effective_date: datetime
    created_at: datetime = Field(default_factory=now)

    @property
    def gross_salary(self) -> float:
        return round(self.base_salary + self.allowances.total, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net_salary(self) -> float:
        return round(self.gross_salary - self.deductions.total, 2)


class SalaryCreate(BaseModel):
    """Salary fields provided by the user; the employee name comes from the staff record."""

    staff_id: str = Field(..., description="Staff member, e.g. STAFF0003")
    position: str = Field(..., min_length=1, description="Job position")
    department: str = Field(..., min_length=1, description="Department")
    base_salary: float = Field(..., gt=0, description="Monthly base salary")
    allowances: Allowances = Field(default_factory=Allowances, description="Monthly allowances")
    deductions: Deductions = Field(default_factory=Deductions, description="Monthly deductions")
    effective_date: datetime | None = Field(None, description="First day the salary applies (defaults to now)")


class PayrollPayment(MongoModel):
    """One salary payment to a staff member."""

    staff_id: str
    employee_name: str
    salary: float  # Gross
    deductions: float
    net_pay: float
    payment_date: datetime
    status: PayrollStatus = PayrollStatus.PENDING
    salary_record_id: UUID
    created_at: datetime = Field(default_factory=now)


class PayrollPaymentCreate(BaseModel):
    staff_id: str = Field(..., description="Staff member to pay")
    payment_date: datetime | None = Field(None, description="Payment date (defaults to now)")
    status: PayrollStatus = Field(PayrollStatus.PENDING, description="Initial payment status")


class PayrollReport(BaseModel):
    """Payroll totals over a period."""

    start: datetime | None = Field(None, description="Inclusive start of the period")
    end: datetime | None = Field(None, description="Exclusive end of the period")
    total_payroll: float = Field(..., description="Sum of gross salaries")
    total_deductions: float = Field(..., description="Sum of deductions")
    total_net_pay: float = Field(..., description="Sum of net pay")
    pending_payments: int = Field(..., description="Payments not yet made")
    paid_payments: int = Field(..., description="Payments made")
    failed_payments: int = Field(..., description="Payments that failed")
