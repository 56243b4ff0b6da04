from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from ledgerdesk.app import App
from ledgerdesk.config import Config
from ledgerdesk.errors import UserError
from ledgerdesk.web.error_handlers import general_exception_handler, user_error_handler
from ledgerdesk.web.openapi import set_custom_openapi
from ledgerdesk.web.routers import (
    access_router,
    auth_router,
    counters_router,
    customers_router,
    finance_router,
    invoices_router,
    metadata_router,
    notifications_router,
    payroll_router,
    profile_router,
    staff_router,
    users_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="LedgerDesk API", lifespan=lifespan, openapi_tags=[])

    app.add_middleware(SessionMiddleware, secret_key=config.session_secret_key)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    for router in (
        auth_router,
        profile_router,
        access_router,
        users_router,
        customers_router,
        staff_router,
        invoices_router,
        payroll_router,
        finance_router,
        counters_router,
        notifications_router,
        metadata_router,
    ):
        app.include_router(router, prefix="/api/v1")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
