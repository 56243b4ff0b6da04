import re
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.finance.service import build_date_query
from ledgerdesk.core.modules.payroll.models import (
    PayrollPayment,
    PayrollPaymentCreate,
    PayrollReport,
    PayrollStatus,
    SalaryCreate,
    SalaryRecord,
)
from ledgerdesk.core.modules.staff.models import StaffStatus
from ledgerdesk.errors import NotFoundError, ValidationError
from ledgerdesk.utils import now

logger = structlog.get_logger(__name__)

SALARY_SEARCH_FIELDS = ("staff_id", "employee_name", "position", "department")


def build_salary_query(search: str | None, department: str | None) -> dict[str, Any]:
    """Case-insensitive substring search over the salary fields, with an optional exact department."""
    query: dict[str, Any] = {}
    if department:
        query["department"] = department
    if search and search.strip():
        pattern = re.escape(search.strip())
        query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in SALARY_SEARCH_FIELDS]
    return query


def build_payroll_report(
    rows: list[dict[str, Any]], start: datetime | None = None, end: datetime | None = None
) -> PayrollReport:
    """Build the report from per-status $group rows. Failed payments are counted but not totalled."""
    by_status = {row["_id"]: row for row in rows}
    counted = [row for status, row in by_status.items() if status != PayrollStatus.FAILED]

    def count(status: PayrollStatus) -> int:
        return by_status[status]["count"] if status in by_status else 0

    return PayrollReport(
        start=start,
        end=end,
        total_payroll=round(sum(row["salary"] for row in counted), 2),
        total_deductions=round(sum(row["deductions"] for row in counted), 2),
        total_net_pay=round(sum(row["net_pay"] for row in counted), 2),
        pending_payments=count(PayrollStatus.PENDING),
        paid_payments=count(PayrollStatus.PAID),
        failed_payments=count(PayrollStatus.FAILED),
    )


class PayrollService(Service):
    """Salary structures of staff members and the salary payments made from them."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._salaries = database.get_collection("staff-salaries")
        self._payments = database.get_collection("payroll")

    async def on_start(self) -> None:
        await self._salaries.create_index([("staff_id", 1), ("effective_date", -1)])
        await self._salaries.create_index([("department", 1)])
        await self._payments.create_index([("payment_date", -1)])
        await self._payments.create_index([("status", 1)])

    async def create_salary(self, data: SalaryCreate) -> SalaryRecord:
        staff = await self.core.services.staff.get_staff(data.staff_id)
        record = SalaryRecord(
            staff_id=staff.staff_id,
            employee_name=staff.name,
            position=data.position.strip(),
            department=data.department.strip(),
            base_salary=data.base_salary,
            allowances=data.allowances,
            deductions=data.deductions,
            effective_date=data.effective_date or now(),
        )
        if record.net_salary < 0:
            raise ValidationError(
                f"Deductions of {record.deductions.total:.2f} exceed the gross salary of {record.gross_salary:.2f}"
            )
        await self._salaries.insert_one(record.to_mongo())
        logger.info("salary_created", staff_id=record.staff_id, net_salary=record.net_salary)
        return record

    async def list_salaries(self, search: str | None = None, department: str | None = None) -> list[SalaryRecord]:
        """Get salary records newest first."""
        cursor = self._salaries.find(build_salary_query(search, department)).sort("created_at", -1)
        return await SalaryRecord.list_cursor(cursor)

    async def get_current_salary(self, staff_id: str, at: datetime | None = None) -> SalaryRecord:
        """Get the salary record in effect at the given time."""
        at = at or now()
        cursor = (
            self._salaries.find({"staff_id": staff_id, "effective_date": {"$lte": at}})
            .sort("effective_date", -1)
            .limit(1)
        )
        records = await SalaryRecord.list_cursor(cursor)
        if not records:
            raise NotFoundError(f"No salary in effect for '{staff_id}' on {at.date().isoformat()}")
        return records[0]

    async def pay_salary(self, data: PayrollPaymentCreate) -> PayrollPayment:
        """Create a salary payment from the salary in effect on the payment date."""
        staff = await self.core.services.staff.get_staff(data.staff_id)
        if staff.status != StaffStatus.ACTIVE:
            raise ValidationError(f"Staff '{staff.staff_id}' is inactive")

        payment_date = data.payment_date or now()
        salary = await self.get_current_salary(staff.staff_id, payment_date)
        payment = PayrollPayment(
            staff_id=staff.staff_id,
            employee_name=staff.name,
            salary=salary.gross_salary,
            deductions=salary.deductions.total,
            net_pay=salary.net_salary,
            payment_date=payment_date,
            status=data.status,
            salary_record_id=salary.id,
        )
        await self._payments.insert_one(payment.to_mongo())
        logger.info("payroll_payment_created", staff_id=staff.staff_id, net_pay=payment.net_pay, status=payment.status)
        return payment

    async def set_payment_status(self, payment_id: UUID, status: PayrollStatus) -> PayrollPayment:
        doc = await self._payments.find_one_and_update(
            {"_id": payment_id}, {"$set": {"status": status}}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError(f"Payroll payment '{payment_id}' not found")
        logger.info("payroll_status_changed", payment_id=str(payment_id), status=status)
        return PayrollPayment.from_mongo(doc)

    async def list_payroll(
        self, start: datetime | None = None, end: datetime | None = None, status: PayrollStatus | None = None
    ) -> list[PayrollPayment]:
        query = build_date_query(start, end, "payment_date")
        if status is not None:
            query["status"] = status
        return await PayrollPayment.list_cursor(self._payments.find(query).sort("payment_date", -1))

    async def get_report(self, start: datetime | None = None, end: datetime | None = None) -> PayrollReport:
        pipeline: list[dict[str, Any]] = [
            {"$match": build_date_query(start, end, "payment_date")},
            {
                "$group": {
                    "_id": "$status",
                    "count": {"$sum": 1},
                    "salary": {"$sum": "$salary"},
                    "deductions": {"$sum": "$deductions"},
                    "net_pay": {"$sum": "$net_pay"},
                }
            },
        ]
        cursor = await self._payments.aggregate(pipeline)
        return build_payroll_report(await cursor.to_list(), start, end)

    async def get_paid_total(self, start: datetime | None = None, end: datetime | None = None) -> float:
        """Net pay of salary payments made in the period."""
        pipeline: list[dict[str, Any]] = [
            {"$match": {**build_date_query(start, end, "payment_date"), "status": PayrollStatus.PAID.value}},
            {"$group": {"_id": None, "total": {"$sum": "$net_pay"}}},
        ]
        cursor = await self._payments.aggregate(pipeline)
        rows = await cursor.to_list()
        return round(rows[0]["total"], 2) if rows else 0.0
