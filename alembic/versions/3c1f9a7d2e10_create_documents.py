"""create documents table

Revision ID: 3c1f9a7d2e10
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "3c1f9a7d2e10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(length=64), primary_key=True),
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("body", postgresql.JSONB(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("seq", sa.BigInteger(), sa.Identity(), nullable=False),
    )
    op.create_index("ix_documents_collection_seq", "documents", ["collection", "seq"])
    op.create_index(
        "ix_documents_body", "documents", ["body"], postgresql_using="gin"
    )


def downgrade() -> None:
    op.drop_index("ix_documents_body", table_name="documents")
    op.drop_index("ix_documents_collection_seq", table_name="documents")
    op.drop_table("documents")
