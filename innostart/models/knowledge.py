"""Knowledge base documents curated by administrators."""

from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from innostart.models.base import TimestampedModel


class KnowledgeDocument(TimestampedModel):
    __tablename__ = "knowledge_documents"
    __table_args__ = (
        Index("ix_knowledge_documents_document_type", "document_type"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    source: Mapped[str | None] = mapped_column(String(255))
    # "metadata" is reserved on declarative classes
    doc_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)
