from datetime import datetime
from typing import Any

import structlog
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.finance.models import (
    CategoryTotal,
    DashboardStats,
    Expense,
    ExpenseCreate,
    FinancialSummary,
    Income,
    IncomeCreate,
)
from ledgerdesk.core.modules.invoice.models import InvoiceStatus
from ledgerdesk.core.modules.staff.models import StaffStatus
from ledgerdesk.errors import ValidationError

logger = structlog.get_logger(__name__)


def build_date_query(start: datetime | None, end: datetime | None, field: str = "date") -> dict[str, Any]:
    """Build a filter on a date field for the half-open range [start, end)."""
    if start is not None and end is not None and start >= end:
        raise ValidationError("Start of the period must be before its end")
    date_range: dict[str, datetime] = {}
    if start is not None:
        date_range["$gte"] = start
    if end is not None:
        date_range["$lt"] = end
    return {field: date_range} if date_range else {}


def to_category_totals(rows: list[dict[str, Any]]) -> list[CategoryTotal]:
    """Convert $group rows ({"_id": category, "total": n}) to totals, largest first."""
    totals = [CategoryTotal(category=str(row["_id"]), total=round(row["total"], 2)) for row in rows]
    return sorted(totals, key=lambda t: (-t.total, t.category))


def build_summary(
    income_rows: list[dict[str, Any]],
    expense_rows: list[dict[str, Any]],
    start: datetime | None = None,
    end: datetime | None = None,
    payroll_total: float = 0,
) -> FinancialSummary:
    income = to_category_totals(income_rows)
    expenses = to_category_totals(expense_rows)
    total_income = round(sum(t.total for t in income), 2)
    total_expenses = round(sum(t.total for t in expenses), 2)
    return FinancialSummary(
        start=start,
        end=end,
        total_income=total_income,
        total_expenses=total_expenses,
        payroll_expenses=round(payroll_total, 2),
        net_profit=round(total_income - total_expenses - payroll_total, 2),
        income_by_category=income,
        expenses_by_category=expenses,
    )


class FinanceService(Service):
    """Income and expense tracking with aggregated reports."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._income = database.get_collection("income")
        self._expenses = database.get_collection("expenses")

    async def on_start(self) -> None:
        await self._income.create_index([("date", -1)])
        await self._expenses.create_index([("date", -1)])

    async def add_income(self, data: IncomeCreate) -> Income:
        income = Income(**data.model_dump())
        await self._income.insert_one(income.to_mongo())
        logger.info("income_recorded", amount=income.amount, category=income.category)
        return income

    async def list_income(self, start: datetime | None = None, end: datetime | None = None) -> list[Income]:
        cursor = self._income.find(build_date_query(start, end)).sort("date", -1)
        return await Income.list_cursor(cursor)

    async def add_expense(self, data: ExpenseCreate) -> Expense:
        expense = Expense(**data.model_dump())
        await self._expenses.insert_one(expense.to_mongo())
        logger.info("expense_recorded", amount=expense.amount, category=expense.category)
        return expense

    async def list_expenses(self, start: datetime | None = None, end: datetime | None = None) -> list[Expense]:
        cursor = self._expenses.find(build_date_query(start, end)).sort("date", -1)
        return await Expense.list_cursor(cursor)

    async def get_summary(self, start: datetime | None = None, end: datetime | None = None) -> FinancialSummary:
        """Totals per category and overall for the period, including salaries paid."""
        query = build_date_query(start, end)
        income_rows = await self._sum_by_category(self._income, query)
        expense_rows = await self._sum_by_category(self._expenses, query)
        payroll_total = await self.core.services.payroll.get_paid_total(start, end)
        return build_summary(income_rows, expense_rows, start, end, payroll_total)

    async def get_dashboard(self) -> DashboardStats:
        services = self.core.services
        return DashboardStats(
            customers=await services.customer.count_customers(),
            active_staff=await services.staff.count_staff(StaffStatus.ACTIVE),
            invoices=await services.invoice.count_invoices(),
            unpaid_invoices=await services.invoice.count_invoices(InvoiceStatus.UNPAID),
            outstanding_balance=await services.invoice.get_outstanding_balance(),
            payments_received=await services.invoice.get_payments_received(),
        )

    @staticmethod
    async def _sum_by_category(
        collection: AsyncCollection[dict[str, Any]], query: dict[str, Any]
    ) -> list[dict[str, Any]]:
        pipeline: list[dict[str, Any]] = [
            {"$match": query},
            {"$group": {"_id": "$category", "total": {"$sum": "$amount"}}},
        ]
        cursor = await collection.aggregate(pipeline)
        return await cursor.to_list()
