"""Document store adapter.

Every entity the aggregation core reads (enrollments, courses, lectures,
files, reviews, and the quizzes/assignments/categories/users that
expansion reaches) lives in a named collection of JSON documents keyed
by a string `id`.

Soft-deleted documents (`is_deleted: true`) are invisible to every read
unless the caller passes include_deleted=True.  The predicate is applied
here, once, so no call site has to remember it.

Query language (kept deliberately small so Postgres can compile it):
  {"field": value}                  equality
  {"field": {"$in": [v1, v2]}}      membership
  {"field": {"$regex": "pattern"}}  case-insensitive search
"""

from __future__ import annotations

import copy
import datetime
import re
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

Document = dict[str, Any]
Query = dict[str, Any]

SUPPORTED_OPERATORS = frozenset({"$in", "$regex"})


def now_ms() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp() * 1000)


def is_visible(doc: Document, include_deleted: bool = False) -> bool:
    return include_deleted or doc.get("is_deleted") is not True


def is_operator_clause(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(
        isinstance(k, str) and k.startswith("$") for k in value
    )


@runtime_checkable
class DocumentStore(Protocol):
    async def find(
        self,
        collection: str,
        query: Query | None = None,
        *,
        skip: int = 0,
        limit: int | None = None,
        include_deleted: bool = False,
    ) -> list[Document]:
        """Matching documents in insertion order, paginated."""
        ...

    async def find_one(
        self, collection: str, query: Query, *, include_deleted: bool = False
    ) -> Document | None: ...

    async def find_by_ids(
        self, collection: str, ids: Iterable[str], *, include_deleted: bool = False
    ) -> dict[str, Document]:
        """Batched lookup. Ids that do not resolve are simply absent."""
        ...

    async def count(
        self, collection: str, query: Query | None = None, *, include_deleted: bool = False
    ) -> int: ...

    async def save(self, collection: str, doc: Document) -> Document:
        """Insert or replace by id; stamps created_at/updated_at."""
        ...


def _match_value(actual: Any, expected: Any) -> bool:
    if not is_operator_clause(expected):
        return actual == expected

    for op, arg in expected.items():
        if op == "$in":
            if actual not in arg:
                return False
        elif op == "$regex":
            if not isinstance(actual, str) or not re.search(arg, actual, re.IGNORECASE):
                return False
        else:
            raise ValueError(f"unsupported query operator {op!r}")
    return True


def matches(doc: Document, query: Query | None) -> bool:
    if not query:
        return True
    return all(_match_value(doc.get(key), expected) for key, expected in query.items())


class InMemoryDocumentStore:
    """Dict-backed store for dev and tests.

    Returns deep copies, so callers can never mutate stored documents
    through a read result.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def clear(self) -> None:
        self._collections.clear()

    def _scan(
        self, collection: str, query: Query | None, include_deleted: bool
    ) -> list[Document]:
        docs = self._collections.get(collection, {}).values()
        return [d for d in docs if is_visible(d, include_deleted) and matches(d, query)]

    async def find(
        self,
        collection: str,
        query: Query | None = None,
        *,
        skip: int = 0,
        limit: int | None = None,
        include_deleted: bool = False,
    ) -> list[Document]:
        found = self._scan(collection, query, include_deleted)
        start = max(skip, 0)
        end = None if limit is None else start + max(limit, 0)
        return [copy.deepcopy(d) for d in found[start:end]]

    async def find_one(
        self, collection: str, query: Query, *, include_deleted: bool = False
    ) -> Document | None:
        found = self._scan(collection, query, include_deleted)
        return copy.deepcopy(found[0]) if found else None

    async def find_by_ids(
        self, collection: str, ids: Iterable[str], *, include_deleted: bool = False
    ) -> dict[str, Document]:
        docs = self._collections.get(collection, {})
        out: dict[str, Document] = {}
        for doc_id in ids:
            doc = docs.get(str(doc_id))
            if doc is not None and is_visible(doc, include_deleted):
                out[str(doc_id)] = copy.deepcopy(doc)
        return out

    async def count(
        self, collection: str, query: Query | None = None, *, include_deleted: bool = False
    ) -> int:
        return len(self._scan(collection, query, include_deleted))

    async def save(self, collection: str, doc: Document) -> Document:
        stored = copy.deepcopy(doc)
        stored["id"] = str(stored.get("id") or uuid4())
        docs = self._collections.setdefault(collection, {})
        existing = docs.get(stored["id"])

        now = now_ms()
        stored["created_at"] = (
            existing.get("created_at") if existing else stored.get("created_at")
        ) or now
        stored["updated_at"] = now
        docs[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def insert_many(self, collection: str, docs: Iterable[Document]) -> None:
        """Seeding helper for dev fixtures and tests."""
        for doc in docs:
            await self.save(collection, doc)
