"""Query compilation for the Postgres store (no database required)."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.dialects import postgresql

from enrollview.repos.pg_document_store import PgDocumentStore, _compile


def _sql(clause, *, literal: bool = True) -> str:
    kwargs = {"literal_binds": True} if literal else {}
    return str(clause.compile(dialect=postgresql.dialect(), compile_kwargs=kwargs))


def test_equality_uses_jsonb_containment() -> None:
    assert "@>" in _sql(_compile("student_id", "s1"), literal=False)


def test_in_operator_extracts_text() -> None:
    sql = _sql(_compile("course_id", {"$in": ["c1", "c2"]}))
    assert "->>" in sql
    assert "IN" in sql
    assert "'c1'" in sql and "'c2'" in sql


def test_regex_is_case_insensitive() -> None:
    sql = _sql(_compile("title", {"$regex": "python"}))
    assert "~*" in sql


def test_unknown_operator_is_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported query operator"):
        _compile("rating", {"$gt": 3})


def test_save_requires_an_id() -> None:
    store = PgDocumentStore(session=None)  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="document id is required"):
        asyncio.run(store.save("enrollments", {"course_id": "c1"}))
