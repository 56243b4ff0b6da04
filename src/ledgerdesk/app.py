from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from uuid import UUID

from ledgerdesk.config import Config
from ledgerdesk.core.core import Core
from ledgerdesk.core.modules.access.models import GuardDecision
from ledgerdesk.core.modules.counter.models import Counter
from ledgerdesk.core.modules.customer.models import Customer, CustomerCreate
from ledgerdesk.core.modules.finance.models import (
    DashboardStats,
    Expense,
    ExpenseCreate,
    FinancialSummary,
    Income,
    IncomeCreate,
)
from ledgerdesk.core.modules.invoice.models import Invoice, InvoiceCreate, InvoiceStatus, Payment, PaymentCreate
from ledgerdesk.core.modules.notification.models import PushNotification, PushResult
from ledgerdesk.core.modules.payroll.models import (
    PayrollPayment,
    PayrollPaymentCreate,
    PayrollReport,
    PayrollStatus,
    SalaryCreate,
    SalaryRecord,
)
from ledgerdesk.core.modules.session.models import AuthToken
from ledgerdesk.core.modules.staff.models import Staff, StaffCreate, StaffStatus
from ledgerdesk.core.modules.user.models import User, UserType, UserView
from ledgerdesk.core.pagination import PaginationResult
from ledgerdesk.errors import AuthenticationError, ValidationError


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # --- Auth & profile ---

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def register(self, email: str, password: str, display_name: str) -> UserView:
        """Self-registration; new accounts are customers until an admin promotes them."""
        user = await self._core.services.user.create_user(email, password, display_name, UserType.CUSTOMER)
        return UserView.from_domain(user)

    async def login(self, email: str, password: str) -> AuthToken:
        """Authenticate user and create session."""
        user = await self._core.services.user.verify_password(email, password)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(user)

    async def change_password(self, auth_token: AuthToken, old_password: str, new_password: str) -> None:
        user = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.user.change_password(user.id, old_password, new_password)

    async def check_access(self, auth_token: AuthToken | None, path: str) -> GuardDecision:
        """Evaluate the access guard for a navigation target."""
        return await self._core.services.access.evaluate(auth_token, path)

    # --- User administration (admin only) ---

    async def get_all_users(self, auth_token: AuthToken) -> list[UserView]:
        await self._core.services.access.ensure_admin(auth_token)
        users = await self._core.services.user.get_all_users()
        return [UserView.from_domain(user) for user in users]

    async def create_user(
        self, auth_token: AuthToken, email: str, password: str, display_name: str, usertype: UserType
    ) -> UserView:
        await self._core.services.access.ensure_admin(auth_token)
        user = await self._core.services.user.create_user(email, password, display_name, usertype)
        return UserView.from_domain(user)

    async def set_usertype(self, auth_token: AuthToken, email: str, usertype: UserType) -> UserView:
        """Change a user's role (the promotion path for self-registered accounts)."""
        current_user = await self._core.services.access.ensure_admin(auth_token)
        user = await self._resolve_user(email)
        if user.id == current_user.id and usertype != UserType.ADMIN:
            raise ValidationError("Cannot remove your own admin role")
        updated = await self._core.services.user.set_usertype(user.id, usertype)
        return UserView.from_domain(updated)

    async def delete_user(self, auth_token: AuthToken, email: str) -> None:
        """Delete a user (admin only, cannot delete self)."""
        current_user = await self._core.services.access.ensure_admin(auth_token)
        user = await self._resolve_user(email)
        if user.id == current_user.id:
            raise ValidationError("Cannot delete yourself")
        await self._core.services.user.delete_user(user.id)
        await self._core.services.session.invalidate_user_sessions(user.id)

    # --- Customers ---

    async def create_customer(self, auth_token: AuthToken, data: CustomerCreate) -> Customer:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.customer.create_customer(data)

    async def get_customers(
        self, auth_token: AuthToken, search: str | None, limit: int, offset: int
    ) -> PaginationResult[Customer]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.customer.list_customers(search, limit, offset)

    async def get_customer(self, auth_token: AuthToken, customer_id: str) -> Customer:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.customer.get_customer(customer_id)

    async def delete_customer(self, auth_token: AuthToken, customer_id: str) -> None:
        await self._core.services.access.ensure_staff(auth_token)
        await self._core.services.customer.delete_customer(customer_id)

    # --- Staff ---

    async def create_staff(self, auth_token: AuthToken, data: StaffCreate) -> Staff:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.staff.create_staff(data)

    async def get_staff_list(self, auth_token: AuthToken, status: StaffStatus | None) -> list[Staff]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.staff.list_staff(status)

    async def get_staff(self, auth_token: AuthToken, staff_id: str) -> Staff:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.staff.get_staff(staff_id)

    async def set_staff_status(self, auth_token: AuthToken, staff_id: str, status: StaffStatus) -> Staff:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.staff.set_status(staff_id, status)

    async def delete_staff(self, auth_token: AuthToken, staff_id: str) -> None:
        await self._core.services.access.ensure_staff(auth_token)
        await self._core.services.staff.delete_staff(staff_id)

    # --- Invoices & payments ---

    async def create_invoice(self, auth_token: AuthToken, data: InvoiceCreate) -> Invoice:
        user_id = await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.create_invoice(data, user_id)

    async def get_invoices(
        self, auth_token: AuthToken, status: InvoiceStatus | None, customer_id: str | None, limit: int, offset: int
    ) -> PaginationResult[Invoice]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.list_invoices(status, customer_id, limit, offset)

    async def get_invoice(self, auth_token: AuthToken, invoice_id: str) -> Invoice:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.get_invoice(invoice_id)

    async def cancel_invoice(self, auth_token: AuthToken, invoice_id: str) -> Invoice:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.cancel_invoice(invoice_id)

    async def record_payment(self, auth_token: AuthToken, invoice_id: str, data: PaymentCreate) -> Payment:
        user_id = await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.record_payment(invoice_id, data, user_id)

    async def get_payments(self, auth_token: AuthToken, invoice_id: str) -> list[Payment]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.invoice.list_payments(invoice_id)

    # --- Payroll ---

    async def create_salary(self, auth_token: AuthToken, data: SalaryCreate) -> SalaryRecord:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.create_salary(data)

    async def get_salaries(
        self, auth_token: AuthToken, search: str | None, department: str | None
    ) -> list[SalaryRecord]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.list_salaries(search, department)

    async def get_current_salary(self, auth_token: AuthToken, staff_id: str) -> SalaryRecord:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.get_current_salary(staff_id)

    async def pay_salary(self, auth_token: AuthToken, data: PayrollPaymentCreate) -> PayrollPayment:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.pay_salary(data)

    async def set_payroll_status(
        self, auth_token: AuthToken, payment_id: UUID, status: PayrollStatus
    ) -> PayrollPayment:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.set_payment_status(payment_id, status)

    async def get_payroll(
        self, auth_token: AuthToken, start: datetime | None, end: datetime | None, status: PayrollStatus | None
    ) -> list[PayrollPayment]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.list_payroll(start, end, status)

    async def get_payroll_report(
        self, auth_token: AuthToken, start: datetime | None, end: datetime | None
    ) -> PayrollReport:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.payroll.get_report(start, end)

    # --- Finance ---

    async def add_income(self, auth_token: AuthToken, data: IncomeCreate) -> Income:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.add_income(data)

    async def get_income(self, auth_token: AuthToken, start: datetime | None, end: datetime | None) -> list[Income]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.list_income(start, end)

    async def add_expense(self, auth_token: AuthToken, data: ExpenseCreate) -> Expense:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.add_expense(data)

    async def get_expenses(self, auth_token: AuthToken, start: datetime | None, end: datetime | None) -> list[Expense]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.list_expenses(start, end)

    async def get_financial_summary(
        self, auth_token: AuthToken, start: datetime | None, end: datetime | None
    ) -> FinancialSummary:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.get_summary(start, end)

    async def get_dashboard(self, auth_token: AuthToken) -> DashboardStats:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.finance.get_dashboard()

    # --- Counters, notifications, metadata ---

    async def get_counters(self, auth_token: AuthToken) -> list[Counter]:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.counter.list_counters()

    async def send_notification(self, auth_token: AuthToken, notification: PushNotification) -> PushResult:
        await self._core.services.access.ensure_staff(auth_token)
        return await self._core.services.notification.send_notification(notification)

    async def get_version(self, auth_token: AuthToken) -> dict[str, str]:
        await self._core.services.access.ensure_staff(auth_token)
        try:
            package_version = version("ledgerdesk")
        except PackageNotFoundError:
            package_version = "unknown"
        config = self._core.config
        return {
            "version": package_version,
            "git_commit_hash": config.git_commit_hash,
            "git_commit_date": config.git_commit_date,
            "build_time": config.build_time,
        }

    async def _resolve_user(self, email: str) -> User:
        return await self._core.services.user.get_user_by_email(email)
