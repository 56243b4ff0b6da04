from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ledgerdesk.core.modules.payroll.models import (
    PayrollPayment,
    PayrollPaymentCreate,
    PayrollReport,
    PayrollStatus,
    SalaryCreate,
    SalaryRecord,
)
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse
from ledgerdesk.web.routers.finance import EndQuery, StartQuery

router: APIRouter = APIRouter(tags=["payroll"])


class PayrollStatusRequest(BaseModel):
    status: PayrollStatus = Field(..., description="New payment status")


@router.get(
    "/payroll/salaries",
    summary="List salary records",
    description="Get salary records newest first. Search matches staff id, employee name, position or department.",
    operation_id="listSalaries",
    responses={200: {"description": "Salary records"}, **STAFF_AUTH_RESPONSES},
)
async def list_salaries(
    app: AppDep,
    auth_token: AuthTokenDep,
    search: Annotated[str | None, Query(description="Case-insensitive text to look for")] = None,
    department: Annotated[str | None, Query(description="Only this department")] = None,
) -> list[SalaryRecord]:
    return await app.get_salaries(auth_token, search, department)


@router.post(
    "/payroll/salaries",
    summary="Create salary record",
    description="Set the salary structure of a staff member from the effective date on. Net salary is computed.",
    operation_id="createSalary",
    status_code=201,
    responses={
        201: {"description": "Salary record created"},
        400: {"model": ErrorResponse, "description": "Deductions exceed the gross salary"},
        404: {"model": ErrorResponse, "description": "Staff member not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def create_salary(request: SalaryCreate, app: AppDep, auth_token: AuthTokenDep) -> SalaryRecord:
    return await app.create_salary(auth_token, request)


@router.get(
    "/payroll/salaries/{staff_id}/current",
    summary="Get current salary",
    operation_id="getCurrentSalary",
    responses={
        200: {"description": "Salary record in effect now"},
        404: {"model": ErrorResponse, "description": "No salary in effect"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def get_current_salary(staff_id: str, app: AppDep, auth_token: AuthTokenDep) -> SalaryRecord:
    return await app.get_current_salary(auth_token, staff_id)


@router.get(
    "/payroll/payments",
    summary="List salary payments",
    operation_id="listPayroll",
    responses={200: {"description": "Salary payments, newest first"}, **STAFF_AUTH_RESPONSES},
)
async def list_payroll(
    app: AppDep,
    auth_token: AuthTokenDep,
    start: StartQuery = None,
    end: EndQuery = None,
    status: Annotated[PayrollStatus | None, Query(description="Only payments with this status")] = None,
) -> list[PayrollPayment]:
    return await app.get_payroll(auth_token, start, end, status)


@router.post(
    "/payroll/payments",
    summary="Pay salary",
    description="Create a salary payment from the salary in effect on the payment date.",
    operation_id="paySalary",
    status_code=201,
    responses={
        201: {"description": "Salary payment created"},
        400: {"model": ErrorResponse, "description": "Staff member is inactive"},
        404: {"model": ErrorResponse, "description": "Staff member or salary not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def pay_salary(request: PayrollPaymentCreate, app: AppDep, auth_token: AuthTokenDep) -> PayrollPayment:
    return await app.pay_salary(auth_token, request)


@router.put(
    "/payroll/payments/{payment_id}/status",
    summary="Set salary payment status",
    operation_id="setPayrollStatus",
    responses={
        200: {"description": "Updated payment"},
        404: {"model": ErrorResponse, "description": "Payment not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def set_payroll_status(
    payment_id: UUID, request: PayrollStatusRequest, app: AppDep, auth_token: AuthTokenDep
) -> PayrollPayment:
    return await app.set_payroll_status(auth_token, payment_id, request.status)


@router.get(
    "/payroll/report",
    summary="Payroll report",
    description=(
        "Totals of gross pay, deductions and net pay, and payment counts by status. "
        "Failed payments are not totalled."
    ),
    operation_id="getPayrollReport",
    responses={200: {"description": "Payroll report"}, **STAFF_AUTH_RESPONSES},
)
async def get_payroll_report(
    app: AppDep, auth_token: AuthTokenDep, start: StartQuery = None, end: EndQuery = None
) -> PayrollReport:
    return await app.get_payroll_report(auth_token, start, end)
