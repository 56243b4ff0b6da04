import re
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.counter.models import CounterName
from ledgerdesk.core.modules.customer.models import ContactType, Customer, CustomerCreate, format_customer_id
from ledgerdesk.core.pagination import PaginationResult
from ledgerdesk.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def validate_customer(data: CustomerCreate) -> CustomerCreate:
    """Check required fields, including the contact details required by contact_type."""
    first_name = data.first_name.strip()
    if not first_name:
        raise ValidationError("First name is mandatory")

    email = data.email.strip().lower()
    phone = data.phone.strip()
    if data.contact_type == ContactType.EMAIL and not email:
        raise ValidationError("Email is required based on your selected contact method")
    if data.contact_type == ContactType.PHONE and not phone:
        raise ValidationError("Phone number is required based on your selected contact method")
    if data.contact_type == ContactType.BOTH and (not email or not phone):
        raise ValidationError("Both email and phone number are required based on your selected contact method")

    # Only keep the contact details the customer chose
    if data.contact_type == ContactType.PHONE:
        email = ""
    if data.contact_type == ContactType.EMAIL:
        phone = ""

    return data.model_copy(
        update={"first_name": first_name, "last_name": data.last_name.strip(), "email": email, "phone": phone}
    )


def build_search_terms(customer_id: str, data: CustomerCreate) -> list[str]:
    terms = [
        customer_id.lower(),
        data.first_name.lower(),
        data.last_name.lower(),
        data.email.lower(),
        data.phone,
        f"{data.first_name} {data.last_name}".strip().lower(),
    ]
    return list(dict.fromkeys(term for term in terms if term))


class CustomerService(Service):
    """Manages customer records."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("customers")

    async def on_start(self) -> None:
        await self._collection.create_index([("customer_id", 1)], unique=True)
        await self._collection.create_index([("search_terms", 1)])
        await self._collection.create_index([("created_at", -1)])

    async def create_customer(self, data: CustomerCreate) -> Customer:
        """Validate, allocate the next customer id, then save."""
        data = validate_customer(data)
        customer_id = format_customer_id(await self.core.services.counter.get_next_id(CounterName.CUSTOMER))
        customer = Customer(
            customer_id=customer_id,
            search_terms=build_search_terms(customer_id, data),
            **data.model_dump(),
        )
        await self._collection.insert_one(customer.to_mongo())
        logger.info("customer_created", customer_id=customer_id)
        return customer

    async def get_customer(self, customer_id: str) -> Customer:
        doc = await self._collection.find_one({"customer_id": customer_id})
        if doc is None:
            raise NotFoundError(f"Customer '{customer_id}' not found")
        return Customer.from_mongo(doc)

    async def has_customer(self, customer_id: str) -> bool:
        return await self._collection.count_documents({"customer_id": customer_id}, limit=1) > 0

    async def list_customers(self, search: str | None = None, limit: int = 50, offset: int = 0) -> PaginationResult[Customer]:
        """Get customers newest first, optionally filtered by a search prefix."""
        query: dict[str, Any] = {}
        if search and search.strip():
            query["search_terms"] = {"$regex": f"^{re.escape(search.strip().lower())}"}

        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
        items = await Customer.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def count_customers(self) -> int:
        return await self._collection.count_documents({})

    async def delete_customer(self, customer_id: str) -> None:
        result = await self._collection.delete_one({"customer_id": customer_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Customer '{customer_id}' not found")
        logger.info("customer_deleted", customer_id=customer_id)
