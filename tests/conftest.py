"""Shared pytest fixtures."""

import asyncio
import copy
import operator
import re
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from uuid import UUID

import pytest

from ledgerdesk.core.modules.user.models import User, UserType


@pytest.fixture
def anyio_backend():
    return "asyncio"


QUERY_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$in": lambda value, options: value in options,
    "$ne": operator.ne,
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

EXPRESSION_OPERATORS: dict[str, Callable[..., Any]] = {
    "$add": lambda *values: sum(values),
    "$subtract": operator.sub,
    "$round": round,
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def evaluate(expression: Any, document: dict[str, Any]) -> Any:
    """Evaluate the subset of aggregation expressions the services use."""
    if isinstance(expression, str) and expression.startswith("$"):
        return document.get(expression[1:])
    if isinstance(expression, dict) and len(expression) == 1:
        name, args = next(iter(expression.items()))
        if name == "$cond":
            condition, then, otherwise = args
            return evaluate(then if evaluate(condition, document) else otherwise, document)
        if name in EXPRESSION_OPERATORS:
            return EXPRESSION_OPERATORS[name](*(evaluate(arg, document) for arg in args))
    return expression


def is_operator_dict(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(key.startswith("$") for key in value)


def matches_operators(value: Any, condition: dict[str, Any]) -> bool:
    if isinstance(value, list) and "$regex" in condition:
        return any(matches_operators(item, condition) for item in value)
    for name, arg in condition.items():
        if name == "$options":
            continue
        if name == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not (isinstance(value, str) and re.search(arg, value, flags)):
                return False
        elif not QUERY_OPERATORS[name](value, arg):
            return False
    return True


def group_rows(rows: list[dict[str, Any]], stage: dict[str, Any]) -> list[dict[str, Any]]:
    """Apply a $group stage whose accumulators are all $sum."""
    groups: dict[Any, dict[str, Any]] = {}
    for row in rows:
        key = evaluate(stage["_id"], row)
        result = groups.setdefault(key, {"_id": key})
        for field, accumulator in stage.items():
            if field != "_id":
                result[field] = result.get(field, 0) + evaluate(accumulator["$sum"], row)
    return list(groups.values())


class FakeCommandCursor:
    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = rows

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return self._rows


class FakeCursor:
    """Async cursor over a snapshot of documents supporting sort/skip/limit."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = list(documents)

    def sort(self, key: str | list[tuple[str, int]], direction: int = 1) -> "FakeCursor":
        keys = key if isinstance(key, list) else [(key, direction)]
        for field, order in reversed(keys):
            self._documents.sort(key=lambda document: document.get(field), reverse=order < 0)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._documents = self._documents[count:]
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._documents = self._documents[:count]
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._documents:
            await asyncio.sleep(0)
            yield copy.deepcopy(document)


class FakeCollection:
    """In-memory stand-in for an AsyncCollection.

    Supports equality, comparison, $regex and $or filters, $expr, $inc/$set and pipeline updates,
    and $match/$group aggregations.
    Every operation yields to the event loop first, so concurrent callers interleave,
    but the read-modify-write inside one operation is atomic like MongoDB's.
    """

    def __init__(self) -> None:
        self.documents: dict[Any, dict[str, Any]] = {}
        self.error: Exception | None = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def _matches(self, document: dict[str, Any], query: dict[str, Any]) -> bool:
        for key, condition in query.items():
            if key == "$expr":
                matched = bool(evaluate(condition, document))
            elif key == "$or":
                matched = any(self._matches(document, option) for option in condition)
            elif is_operator_dict(condition):
                matched = matches_operators(document.get(key), condition)
            else:
                matched = document.get(key) == condition
            if not matched:
                return False
        return True

    def _first(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return next((doc for doc in self.documents.values() if self._matches(doc, query)), None)

    @staticmethod
    def _apply_update(document: dict[str, Any], update: dict[str, Any] | list[dict[str, Any]]) -> None:
        if isinstance(update, list):
            for stage in update:
                values = {field: evaluate(expression, document) for field, expression in stage["$set"].items()}
                document.update(values)
            return
        for field, amount in update.get("$inc", {}).items():
            document[field] = document.get(field, 0) + amount
        document.update(update.get("$set", {}))

    async def create_index(self, *args: Any, **kwargs: Any) -> str:
        return "index"

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        self._check()
        document = self._first(query)
        return copy.deepcopy(document) if document is not None else None

    def find(self, query: dict[str, Any] | None = None) -> FakeCursor:
        return FakeCursor([doc for doc in self.documents.values() if self._matches(doc, query or {})])

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any] | list[dict[str, Any]],
        upsert: bool = False,
        return_document: bool = False,
    ) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        self._check()
        document = self._first(query)
        if document is None:
            if not upsert:
                return None
            document = dict(query)
            self.documents[document["_id"]] = document
        before = copy.deepcopy(document)
        self._apply_update(document, update)
        return copy.deepcopy(document) if return_document else before

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        self._check()
        self.documents[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def update_one(
        self, query: dict[str, Any], update: dict[str, Any] | list[dict[str, Any]]
    ) -> SimpleNamespace:
        await asyncio.sleep(0)
        self._check()
        document = self._first(query)
        if document is not None:
            self._apply_update(document, update)
        return SimpleNamespace(matched_count=int(document is not None))

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        self._check()
        document = self._first(query)
        if document is not None:
            del self.documents[document["_id"]]
        return SimpleNamespace(deleted_count=int(document is not None))

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        self._check()
        matched = [key for key, doc in self.documents.items() if self._matches(doc, query)]
        for key in matched:
            del self.documents[key]
        return SimpleNamespace(deleted_count=len(matched))

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> FakeCommandCursor:
        await asyncio.sleep(0)
        self._check()
        rows = [copy.deepcopy(doc) for doc in self.documents.values()]
        for stage in pipeline:
            if "$match" in stage:
                rows = [row for row in rows if self._matches(row, stage["$match"])]
            elif "$group" in stage:
                rows = group_rows(rows, stage["$group"])
        return FakeCommandCursor(rows)

    async def count_documents(self, query: dict[str, Any], limit: int | None = None) -> int:
        await asyncio.sleep(0)
        return sum(1 for doc in self.documents.values() if self._matches(doc, query))


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def database():
    return FakeDatabase()


def make_user(usertype: UserType, user_id: str) -> User:
    return User(
        id=UUID(user_id),
        email=f"{usertype.value}@example.com",
        display_name=usertype.value.title(),
        password_hash="$2b$12$hashed_password_here",
        usertype=usertype,
    )


@pytest.fixture
def admin_user():
    return make_user(UserType.ADMIN, "11111111-1111-1111-1111-111111111111")


@pytest.fixture
def staff_user():
    return make_user(UserType.STAFF, "22222222-2222-2222-2222-222222222222")


@pytest.fixture
def customer_user():
    return make_user(UserType.CUSTOMER, "33333333-3333-3333-3333-333333333333")
