from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from ledgerdesk.core.modules.finance.models import (
    DashboardStats,
    Expense,
    ExpenseCreate,
    FinancialSummary,
    Income,
    IncomeCreate,
)
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse

router: APIRouter = APIRouter(tags=["finance"])

StartQuery = Annotated[datetime | None, Query(description="Inclusive start of the period")]
EndQuery = Annotated[datetime | None, Query(description="Exclusive end of the period")]


@router.get(
    "/finance/income",
    summary="List income",
    operation_id="listIncome",
    responses={200: {"description": "Income entries, newest first"}, **STAFF_AUTH_RESPONSES},
)
async def list_income(
    app: AppDep, auth_token: AuthTokenDep, start: StartQuery = None, end: EndQuery = None
) -> list[Income]:
    return await app.get_income(auth_token, start, end)


@router.post(
    "/finance/income",
    summary="Add income",
    operation_id="addIncome",
    status_code=201,
    responses={201: {"description": "Income recorded"}, **STAFF_AUTH_RESPONSES},
)
async def add_income(request: IncomeCreate, app: AppDep, auth_token: AuthTokenDep) -> Income:
    return await app.add_income(auth_token, request)


@router.get(
    "/finance/expenses",
    summary="List expenses",
    operation_id="listExpenses",
    responses={200: {"description": "Expense entries, newest first"}, **STAFF_AUTH_RESPONSES},
)
async def list_expenses(
    app: AppDep, auth_token: AuthTokenDep, start: StartQuery = None, end: EndQuery = None
) -> list[Expense]:
    return await app.get_expenses(auth_token, start, end)


@router.post(
    "/finance/expenses",
    summary="Add expense",
    operation_id="addExpense",
    status_code=201,
    responses={201: {"description": "Expense recorded"}, **STAFF_AUTH_RESPONSES},
)
async def add_expense(request: ExpenseCreate, app: AppDep, auth_token: AuthTokenDep) -> Expense:
    return await app.add_expense(auth_token, request)


@router.get(
    "/finance/summary",
    summary="Financial summary",
    description="Total income, total expenses and net profit for a period, with per-category totals.",
    operation_id="getFinancialSummary",
    responses={
        200: {"description": "Summary"},
        400: {"model": ErrorResponse, "description": "Start is not before end"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def get_summary(
    app: AppDep, auth_token: AuthTokenDep, start: StartQuery = None, end: EndQuery = None
) -> FinancialSummary:
    return await app.get_financial_summary(auth_token, start, end)


@router.get(
    "/finance/dashboard",
    summary="Dashboard numbers",
    operation_id="getDashboard",
    responses={200: {"description": "Headline counts and balances"}, **STAFF_AUTH_RESPONSES},
)
async def get_dashboard(app: AppDep, auth_token: AuthTokenDep) -> DashboardStats:
    return await app.get_dashboard(auth_token)
