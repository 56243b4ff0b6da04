from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.config import Config

if TYPE_CHECKING:
    from ledgerdesk.core.modules.access.service import AccessService
    from ledgerdesk.core.modules.counter.service import CounterService
    from ledgerdesk.core.modules.customer.service import CustomerService
    from ledgerdesk.core.modules.finance.service import FinanceService
    from ledgerdesk.core.modules.invoice.service import InvoiceService
    from ledgerdesk.core.modules.notification.service import NotificationService
    from ledgerdesk.core.modules.payroll.service import PayrollService
    from ledgerdesk.core.modules.session.service import SessionService
    from ledgerdesk.core.modules.staff.service import StaffService
    from ledgerdesk.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that imports and initializes services in a fixed order."""

    user: UserService
    session: SessionService
    access: AccessService
    counter: CounterService
    customer: CustomerService
    staff: StaffService
    invoice: InvoiceService
    payroll: PayrollService
    finance: FinanceService
    notification: NotificationService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._services: list[Service] = []
        self._database = database

        # (attribute_name, module_path, class_name); started in this order
        service_configs = [
            ("user", "ledgerdesk.core.modules.user.service", "UserService"),
            ("session", "ledgerdesk.core.modules.session.service", "SessionService"),
            ("access", "ledgerdesk.core.modules.access.service", "AccessService"),
            ("counter", "ledgerdesk.core.modules.counter.service", "CounterService"),
            ("customer", "ledgerdesk.core.modules.customer.service", "CustomerService"),
            ("staff", "ledgerdesk.core.modules.staff.service", "StaffService"),
            ("invoice", "ledgerdesk.core.modules.invoice.service", "InvoiceService"),
            ("payroll", "ledgerdesk.core.modules.payroll.service", "PayrollService"),
            ("finance", "ledgerdesk.core.modules.finance.service", "FinanceService"),
            ("notification", "ledgerdesk.core.modules.notification.service", "NotificationService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        # Reverse order so dependents stop before their dependencies
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, and auto-register services."""
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.info("core_started", database=self.database.name)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
