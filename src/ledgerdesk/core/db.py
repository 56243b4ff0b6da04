from typing import Any, Self
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.cursor import AsyncCursor

from ledgerdesk.errors import InvalidDocumentError

logger = structlog.get_logger(__name__)


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")
        return data

    @classmethod
    def from_mongo(cls, document: dict[str, Any]) -> Self:
        """Validate a stored document, refusing documents that no longer match the model."""
        try:
            return cls.model_validate(document)
        except PydanticValidationError as e:
            logger.warning("invalid_document", model=cls.__name__, document_id=str(document.get("_id")), errors=e.errors())
            raise InvalidDocumentError(f"Stored {cls.__name__} '{document.get('_id')}' failed validation") from e

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Iterate over an AsyncCursor and return valid model instances, skipping malformed documents."""
        items: list[Self] = []
        async for document in cursor:
            try:
                items.append(cls.model_validate(document))
            except PydanticValidationError:
                logger.warning("invalid_document_skipped", model=cls.__name__, document_id=str(document.get("_id")))
        return items
