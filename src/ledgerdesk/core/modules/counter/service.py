from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.counter.models import Counter
from ledgerdesk.errors import TransientError, ValidationError

logger = structlog.get_logger(__name__)


class CounterService(Service):
    """Allocates strictly increasing integers per counter name."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("counters")

    async def get_next_id(self, counter_name: str) -> int:
        """Atomically increment and return the next value for a counter.

        The first call for an unseen name creates the counter with value 1 and returns 1.
        Raises TransientError when the database is unreachable; nothing should be saved then.
        """
        if not counter_name:
            raise ValidationError("Counter name cannot be empty")

        try:
            result = await self._collection.find_one_and_update(
                {"_id": counter_name},
                {"$inc": {"value": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.exception("counter_allocation_failed", counter=counter_name)
            raise TransientError(f"Could not allocate an id from '{counter_name}'") from e

        value = Counter.model_validate(result).value
        logger.debug("counter_allocated", counter=counter_name, value=value)
        return value

    async def get_current_value(self, counter_name: str) -> int:
        """Get the last allocated value without incrementing (0 if never used)."""
        doc = await self._collection.find_one({"_id": counter_name})
        if doc is None:
            return 0
        return Counter.model_validate(doc).value

    async def list_counters(self) -> list[Counter]:
        """Get all counters sorted by name."""
        return [Counter.model_validate(doc) async for doc in self._collection.find().sort("_id", 1)]
