"""SQLAlchemy table definitions.

The aggregation core works on JSON documents, so Postgres stores every
collection in one table: the document body lives in a JSONB column and
`is_deleted` is mirrored into a real column so the soft-delete predicate
is an indexed boolean test instead of a JSON extraction.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Boolean, Identity, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from enrollview.db.engine import Base


class DocumentRow(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    body: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Insertion order; list pages are stable across requests.
    seq: Mapped[int] = mapped_column(BigInteger, Identity(), nullable=False)

    __table_args__ = (
        Index("ix_documents_collection_seq", "collection", "seq"),
        Index("ix_documents_body", "body", postgresql_using="gin"),
    )
