from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.counter.models import CounterName
from ledgerdesk.core.modules.staff.models import Staff, StaffCreate, StaffStatus, format_staff_id
from ledgerdesk.errors import NotFoundError, ValidationError
from ledgerdesk.utils import now

logger = structlog.get_logger(__name__)


class StaffService(Service):
    """Manages staff records."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("staff")

    async def on_start(self) -> None:
        await self._collection.create_index([("staff_id", 1)], unique=True)
        await self._collection.create_index([("status", 1)])
        await self._collection.create_index([("created_at", 1)])

    async def create_staff(self, data: StaffCreate) -> Staff:
        """Allocate the next staff id and save the record."""
        name = data.name.strip()
        if not name:
            raise ValidationError("Staff name is required")

        staff_id = format_staff_id(await self.core.services.counter.get_next_id(CounterName.STAFF))
        staff = Staff(
            staff_id=staff_id,
            name=name,
            role=data.role.strip(),
            email=data.email.strip().lower(),
            phone=data.phone.strip(),
            salary=data.salary,
            address=data.address,
            joining_date=data.joining_date or now(),
        )
        await self._collection.insert_one(staff.to_mongo())
        logger.info("staff_created", staff_id=staff_id)
        return staff

    async def get_staff(self, staff_id: str) -> Staff:
        doc = await self._collection.find_one({"staff_id": staff_id})
        if doc is None:
            raise NotFoundError(f"Staff '{staff_id}' not found")
        return Staff.from_mongo(doc)

    async def list_staff(self, status: StaffStatus | None = None) -> list[Staff]:
        query: dict[str, Any] = {} if status is None else {"status": status}
        return await Staff.list_cursor(self._collection.find(query).sort("created_at", 1))

    async def count_staff(self, status: StaffStatus | None = None) -> int:
        query: dict[str, Any] = {} if status is None else {"status": status}
        return await self._collection.count_documents(query)

    async def set_status(self, staff_id: str, status: StaffStatus) -> Staff:
        result = await self._collection.update_one({"staff_id": staff_id}, {"$set": {"status": status}})
        if result.matched_count == 0:
            raise NotFoundError(f"Staff '{staff_id}' not found")
        return await self.get_staff(staff_id)

    async def delete_staff(self, staff_id: str) -> None:
        result = await self._collection.delete_one({"staff_id": staff_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Staff '{staff_id}' not found")
        logger.info("staff_deleted", staff_id=staff_id)
