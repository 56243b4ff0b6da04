from ledgerdesk.web.routers.access import router as access_router
from ledgerdesk.web.routers.auth import router as auth_router
from ledgerdesk.web.routers.counters import router as counters_router
from ledgerdesk.web.routers.customers import router as customers_router
from ledgerdesk.web.routers.finance import router as finance_router
from ledgerdesk.web.routers.invoices import router as invoices_router
from ledgerdesk.web.routers.metadata import router as metadata_router
from ledgerdesk.web.routers.notifications import router as notifications_router
from ledgerdesk.web.routers.payroll import router as payroll_router
from ledgerdesk.web.routers.profile import router as profile_router
from ledgerdesk.web.routers.staff import router as staff_router
from ledgerdesk.web.routers.users import router as users_router

__all__ = [
    "access_router",
    "auth_router",
    "counters_router",
    "customers_router",
    "finance_router",
    "invoices_router",
    "metadata_router",
    "notifications_router",
    "payroll_router",
    "profile_router",
    "staff_router",
    "users_router",
]
