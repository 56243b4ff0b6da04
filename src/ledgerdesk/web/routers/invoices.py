from typing import Annotated

from fastapi import APIRouter, Query

from ledgerdesk.core.modules.invoice.models import Invoice, InvoiceCreate, InvoiceStatus, Payment, PaymentCreate
from ledgerdesk.core.pagination import PaginationResult
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse

router: APIRouter = APIRouter(tags=["invoices"])


@router.get(
    "/invoices",
    summary="List invoices",
    description="Get invoices newest first, optionally filtered by status or customer.",
    operation_id="listInvoices",
    responses={200: {"description": "Paginated list of invoices"}, **STAFF_AUTH_RESPONSES},
)
async def list_invoices(
    app: AppDep,
    auth_token: AuthTokenDep,
    status: Annotated[InvoiceStatus | None, Query(description="Only invoices with this status")] = None,
    customer_id: Annotated[str | None, Query(description="Only invoices of this customer")] = None,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Invoice]:
    return await app.get_invoices(auth_token, status, customer_id, limit, offset)


@router.post(
    "/invoices",
    summary="Create invoice",
    description=(
        "Create an invoice for an existing customer. Line totals, subtotal, tax and total are computed "
        "by the server. A sequential invoice id (INV0001, ...) is assigned."
    ),
    operation_id="createInvoice",
    status_code=201,
    responses={
        201: {"description": "Invoice created"},
        400: {"model": ErrorResponse, "description": "Invalid items"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
        503: {"model": ErrorResponse, "description": "Could not allocate an invoice id; nothing was saved"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def create_invoice(request: InvoiceCreate, app: AppDep, auth_token: AuthTokenDep) -> Invoice:
    return await app.create_invoice(auth_token, request)


@router.get(
    "/invoices/{invoice_id}",
    summary="Get invoice",
    operation_id="getInvoice",
    responses={
        200: {"description": "Invoice"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def get_invoice(invoice_id: str, app: AppDep, auth_token: AuthTokenDep) -> Invoice:
    return await app.get_invoice(auth_token, invoice_id)


@router.post(
    "/invoices/{invoice_id}/cancel",
    summary="Cancel invoice",
    description="Cancel an unpaid invoice. Invoices with payments cannot be cancelled.",
    operation_id="cancelInvoice",
    responses={
        200: {"description": "Cancelled invoice"},
        400: {"model": ErrorResponse, "description": "Invoice already has payments or is not open"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def cancel_invoice(invoice_id: str, app: AppDep, auth_token: AuthTokenDep) -> Invoice:
    return await app.cancel_invoice(auth_token, invoice_id)


@router.get(
    "/invoices/{invoice_id}/payments",
    summary="List payments",
    operation_id="listPayments",
    responses={
        200: {"description": "Payments in the order they were received"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def list_payments(invoice_id: str, app: AppDep, auth_token: AuthTokenDep) -> list[Payment]:
    return await app.get_payments(auth_token, invoice_id)


@router.post(
    "/invoices/{invoice_id}/payments",
    summary="Record payment",
    description="Record a payment against an open invoice. The invoice becomes 'Partially Paid' or 'Paid'.",
    operation_id="recordPayment",
    status_code=201,
    responses={
        201: {"description": "Payment recorded"},
        400: {"model": ErrorResponse, "description": "Invoice is closed or the amount exceeds the balance"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def record_payment(invoice_id: str, request: PaymentCreate, app: AppDep, auth_token: AuthTokenDep) -> Payment:
    return await app.record_payment(auth_token, invoice_id, request)
