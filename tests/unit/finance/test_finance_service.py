"""Tests for the financial summary against an in-memory database."""

from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from ledgerdesk.core.modules.counter.service import CounterService
from ledgerdesk.core.modules.finance.models import ExpenseCreate, IncomeCreate
from ledgerdesk.core.modules.finance.service import FinanceService
from ledgerdesk.core.modules.invoice.models import PaymentMethod
from ledgerdesk.core.modules.payroll.models import Deductions, PayrollPaymentCreate, PayrollStatus, SalaryCreate
from ledgerdesk.core.modules.payroll.service import PayrollService
from ledgerdesk.core.modules.staff.models import StaffCreate
from ledgerdesk.core.modules.staff.service import StaffService

pytestmark = pytest.mark.anyio

JANUARY = datetime(2025, 1, 10, tzinfo=UTC)
FEBRUARY = datetime(2025, 2, 1, tzinfo=UTC)
MARCH = datetime(2025, 3, 1, tzinfo=UTC)


@pytest.fixture
def services(database):
    services = SimpleNamespace(
        counter=CounterService(database),
        staff=StaffService(database),
        payroll=PayrollService(database),
        finance=FinanceService(database),
    )
    core = SimpleNamespace(services=services)
    for service in vars(services).values():
        service.set_core(core)
    return services


@pytest.fixture
async def ledger(services):
    """January and February books with one paid and one failed salary payment in January."""
    finance = services.finance
    await finance.add_income(IncomeCreate(amount=10000, source="Acme", category="Sales", date=JANUARY))
    await finance.add_income(IncomeCreate(amount=2000, source="Acme", category="Sales", date=FEBRUARY))
    await finance.add_expense(
        ExpenseCreate(amount=3000, payee="Landlord", category="Rent", date=JANUARY, payment_method=PaymentMethod.CHEQUE)
    )

    staff = await services.staff.create_staff(StaffCreate(name="Ravi Kumar"))
    await services.payroll.create_salary(
        SalaryCreate(
            staff_id=staff.staff_id,
            position="Accountant",
            department="Finance",
            base_salary=4000,
            deductions=Deductions(tax=400),
            effective_date=JANUARY,
        )
    )
    for status in (PayrollStatus.PAID, PayrollStatus.FAILED):
        await services.payroll.pay_salary(
            PayrollPaymentCreate(staff_id=staff.staff_id, payment_date=JANUARY, status=status)
        )


async def test_paid_salaries_reduce_the_profit(services, ledger):
    summary = await services.finance.get_summary(JANUARY, FEBRUARY)
    assert summary.total_income == 10000
    assert summary.total_expenses == 3000
    assert summary.payroll_expenses == 3600
    assert summary.net_profit == 3400


async def test_period_without_payroll(services, ledger):
    summary = await services.finance.get_summary(FEBRUARY, MARCH)
    assert summary.payroll_expenses == 0
    assert summary.net_profit == 2000
