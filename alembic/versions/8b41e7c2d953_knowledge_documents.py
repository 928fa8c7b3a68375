"""knowledge_documents

Revision ID: 8b41e7c2d953
Revises: 3f2a9c1d7e40
Create Date: 2026-10-19 14:10:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "8b41e7c2d953"
down_revision: str | None = "3f2a9c1d7e40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "knowledge_documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("document_type", sa.String(100), nullable=False),
        sa.Column("source", sa.String(255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_knowledge_documents_document_type", "knowledge_documents", ["document_type"]
    )


def downgrade() -> None:
    op.drop_index("ix_knowledge_documents_document_type", table_name="knowledge_documents")
    op.drop_table("knowledge_documents")
