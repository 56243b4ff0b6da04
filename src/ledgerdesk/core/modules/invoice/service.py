from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.counter.models import CounterName
from ledgerdesk.core.modules.invoice.models import (
    OPEN_STATUSES,
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    Payment,
    PaymentCreate,
    compute_totals,
    format_invoice_id,
)
from ledgerdesk.core.pagination import PaginationResult
from ledgerdesk.errors import NotFoundError, TransientError, ValidationError
from ledgerdesk.utils import now

logger = structlog.get_logger(__name__)

# Tolerance for float rounding when comparing money amounts
CENT = 0.005


def build_payment_update(amount: float) -> list[dict[str, Any]]:
    """Pipeline update adding a payment and deriving the new status in one atomic write.

    A negative amount takes a payment back; the status falls back to Partially Paid or Unpaid.
    """
    return [
        {"$set": {"amount_paid": {"$round": [{"$add": ["$amount_paid", amount]}, 2]}}},
        {
            "$set": {
                "status": {
                    "$cond": [
                        {"$gte": [{"$add": ["$amount_paid", CENT]}, "$total_amount"]},
                        InvoiceStatus.PAID.value,
                        {
                            "$cond": [
                                {"$gt": ["$amount_paid", CENT]},
                                InvoiceStatus.PARTIALLY_PAID.value,
                                InvoiceStatus.UNPAID.value,
                            ]
                        },
                    ]
                }
            }
        },
    ]


def check_payment_allowed(invoice: Invoice, amount: float) -> None:
    """Raise ValidationError if the invoice cannot take this payment."""
    if invoice.status == InvoiceStatus.CANCELLED:
        raise ValidationError(f"Invoice '{invoice.invoice_id}' is cancelled")
    if invoice.status == InvoiceStatus.PAID:
        raise ValidationError(f"Invoice '{invoice.invoice_id}' is already paid")
    if amount > invoice.balance + CENT:
        raise ValidationError(f"Payment of {amount:.2f} exceeds the outstanding balance of {invoice.balance:.2f}")


class InvoiceService(Service):
    """Manages invoices and the payments recorded against them."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("invoices")
        self._payments = database.get_collection("payments")

    async def on_start(self) -> None:
        await self._collection.create_index([("invoice_id", 1)], unique=True)
        await self._collection.create_index([("customer_id", 1)])
        await self._collection.create_index([("status", 1), ("created_at", -1)])
        await self._payments.create_index([("invoice_id", 1), ("paid_at", 1)])

    async def create_invoice(self, data: InvoiceCreate, created_by: UUID) -> Invoice:
        """Validate the invoice, allocate the next invoice id, then save."""
        if not data.items:
            raise ValidationError("Invoice must have at least one item")
        customer = await self.core.services.customer.get_customer(data.customer_id)
        totals = compute_totals(data.items, data.tax_rate)

        invoice_id = format_invoice_id(await self.core.services.counter.get_next_id(CounterName.INVOICE))
        invoice = Invoice(
            invoice_id=invoice_id,
            customer_id=customer.customer_id,
            customer_name=customer.full_name,
            items=data.items,
            tax_rate=data.tax_rate,
            sub_total=totals.sub_total,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            issue_date=data.issue_date or now(),
            due_date=data.due_date,
            notes=data.notes,
            created_by=created_by,
        )
        await self._collection.insert_one(invoice.to_mongo())
        logger.info("invoice_created", invoice_id=invoice_id, customer_id=customer.customer_id, total=invoice.total_amount)
        return invoice

    async def get_invoice(self, invoice_id: str) -> Invoice:
        doc = await self._collection.find_one({"invoice_id": invoice_id})
        if doc is None:
            raise NotFoundError(f"Invoice '{invoice_id}' not found")
        return Invoice.from_mongo(doc)

    async def list_invoices(
        self, status: InvoiceStatus | None = None, customer_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Invoice]:
        """Get invoices newest first."""
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status
        if customer_id is not None:
            query["customer_id"] = customer_id

        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
        items = await Invoice.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def cancel_invoice(self, invoice_id: str) -> Invoice:
        """Cancel an invoice that has not received any payment."""
        result = await self._collection.find_one_and_update(
            {"invoice_id": invoice_id, "status": InvoiceStatus.UNPAID, "amount_paid": 0},
            {"$set": {"status": InvoiceStatus.CANCELLED}},
            return_document=ReturnDocument.AFTER,
        )
        if result is None:
            invoice = await self.get_invoice(invoice_id)
            raise ValidationError(f"Invoice '{invoice_id}' cannot be cancelled in status '{invoice.status}'")
        logger.info("invoice_cancelled", invoice_id=invoice_id)
        return Invoice.from_mongo(result)

    async def record_payment(self, invoice_id: str, data: PaymentCreate, recorded_by: UUID) -> Payment:
        """Apply a payment to an open invoice and store the payment record."""
        check_payment_allowed(await self.get_invoice(invoice_id), data.amount)

        # Conditions are re-checked inside the update so concurrent payments cannot overpay
        result = await self._collection.find_one_and_update(
            {
                "invoice_id": invoice_id,
                "status": {"$in": list(OPEN_STATUSES)},
                "$expr": {"$lte": [{"$add": ["$amount_paid", data.amount]}, {"$add": ["$total_amount", CENT]}]},
            },
            build_payment_update(data.amount),
            return_document=ReturnDocument.AFTER,
        )
        if result is None:
            check_payment_allowed(await self.get_invoice(invoice_id), data.amount)
            raise ValidationError(f"Invoice '{invoice_id}' changed while recording the payment, please retry")

        payment = Payment(
            invoice_id=invoice_id,
            amount=round(data.amount, 2),
            method=data.method,
            reference=data.reference.strip(),
            paid_at=data.paid_at or now(),
            recorded_by=recorded_by,
        )
        try:
            await self._payments.insert_one(payment.to_mongo())
        except PyMongoError as e:
            logger.warning("payment_insert_failed", invoice_id=invoice_id, amount=payment.amount, error=str(e))
            await self._revert_payment(invoice_id, data.amount)
            raise TransientError("Could not record the payment, please retry") from e
        logger.info("payment_recorded", invoice_id=invoice_id, amount=payment.amount, status=result["status"])
        return payment

    async def _revert_payment(self, invoice_id: str, amount: float) -> None:
        """Take back an applied payment whose record could not be saved."""
        try:
            await self._collection.update_one({"invoice_id": invoice_id}, build_payment_update(-amount))
        except PyMongoError:
            logger.exception("payment_revert_failed", invoice_id=invoice_id, amount=amount)
        else:
            logger.info("payment_reverted", invoice_id=invoice_id, amount=amount)

    async def list_payments(self, invoice_id: str) -> list[Payment]:
        await self.get_invoice(invoice_id)
        return await Payment.list_cursor(self._payments.find({"invoice_id": invoice_id}).sort("paid_at", 1))

    async def count_invoices(self, status: InvoiceStatus | None = None) -> int:
        query: dict[str, Any] = {} if status is None else {"status": status}
        return await self._collection.count_documents(query)

    async def get_outstanding_balance(self) -> float:
        """Sum of unpaid amounts over all open invoices."""
        pipeline: list[dict[str, Any]] = [
            {"$match": {"status": {"$in": list(OPEN_STATUSES)}}},
            {"$group": {"_id": None, "total": {"$sum": {"$subtract": ["$total_amount", "$amount_paid"]}}}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        rows = await cursor.to_list()
        return round(rows[0]["total"], 2) if rows else 0.0

    async def get_payments_received(self) -> float:
        pipeline: list[dict[str, Any]] = [{"$group": {"_id": None, "total": {"$sum": "$amount"}}}]
        cursor = await self._payments.aggregate(pipeline)
        rows = await cursor.to_list()
        return round(rows[0]["total"], 2) if rows else 0.0
