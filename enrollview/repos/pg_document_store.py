"""PostgreSQL implementation of DocumentStore."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from enrollview.db.tables import DocumentRow
from enrollview.repos.document_store import (
    Document,
    Query,
    is_operator_clause,
    now_ms,
)


class PgDocumentStore:
    """Satisfies the DocumentStore Protocol using one JSONB table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _where(
        self, collection: str, query: Query | None, include_deleted: bool
    ) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = [DocumentRow.collection == collection]
        if not include_deleted:
            clauses.append(DocumentRow.is_deleted.is_(False))
        for key, expected in (query or {}).items():
            clauses.append(_compile(key, expected))
        return clauses

    async def find(
        self,
        collection: str,
        query: Query | None = None,
        *,
        skip: int = 0,
        limit: int | None = None,
        include_deleted: bool = False,
    ) -> list[Document]:
        stmt = (
            select(DocumentRow.body)
            .where(*self._where(collection, query, include_deleted))
            .order_by(DocumentRow.seq)
            .offset(max(skip, 0))
        )
        if limit is not None:
            stmt = stmt.limit(max(limit, 0))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [copy.deepcopy(body) for body in rows]

    async def find_one(
        self, collection: str, query: Query, *, include_deleted: bool = False
    ) -> Document | None:
        found = await self.find(
            collection, query, limit=1, include_deleted=include_deleted
        )
        return found[0] if found else None

    async def find_by_ids(
        self, collection: str, ids: Iterable[str], *, include_deleted: bool = False
    ) -> dict[str, Document]:
        wanted = sorted({str(i) for i in ids})
        if not wanted:
            return {}
        stmt = select(DocumentRow.id, DocumentRow.body).where(
            *self._where(collection, None, include_deleted),
            DocumentRow.id.in_(wanted),
        )
        rows = (await self._session.execute(stmt)).all()
        return {row.id: copy.deepcopy(row.body) for row in rows}

    async def count(
        self, collection: str, query: Query | None = None, *, include_deleted: bool = False
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(DocumentRow)
            .where(*self._where(collection, query, include_deleted))
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def save(self, collection: str, doc: Document) -> Document:
        if not doc.get("id"):
            raise ValueError("document id is required")
        body = copy.deepcopy(doc)
        body["id"] = str(body["id"])

        row = await self._session.get(DocumentRow, (collection, body["id"]))
        now = now_ms()
        if row is None:
            body["created_at"] = body.get("created_at") or now
            body["updated_at"] = now
            row = DocumentRow(
                collection=collection,
                id=body["id"],
                body=body,
                is_deleted=bool(body.get("is_deleted", False)),
            )
            self._session.add(row)
        else:
            body["created_at"] = row.body.get("created_at") or now
            body["updated_at"] = now
            row.body = body
            row.is_deleted = bool(body.get("is_deleted", False))

        await self._session.flush()
        return copy.deepcopy(body)


def _as_text(value: Any) -> str:
    # ->> renders JSON scalars as text: strings bare, everything else as JSON.
    return value if isinstance(value, str) else json.dumps(value)


def _compile(key: str, expected: Any) -> ColumnElement[bool]:
    field = DocumentRow.body[key].astext
    if not is_operator_clause(expected):
        return DocumentRow.body.contains({key: expected})

    parts: list[ColumnElement[bool]] = []
    for op, arg in expected.items():
        if op == "$in":
            parts.append(field.in_([_as_text(v) for v in arg]))
        elif op == "$regex":
            parts.append(field.op("~*")(arg))
        else:
            raise ValueError(f"unsupported query operator {op!r}")
    return and_(*parts)
