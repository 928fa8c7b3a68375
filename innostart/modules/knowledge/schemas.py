"""Knowledge base: Pydantic v2 request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from innostart.schemas.common import CamelModel, CamelRequest, EntityModel, Pagination


class KnowledgeDocumentSummary(EntityModel):
    id: int
    title: str
    document_type: str
    source: str | None
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("doc_metadata", "metadata")
    )
    created_at: datetime


class KnowledgeDocumentResponse(KnowledgeDocumentSummary):
    content: str


class KnowledgeDocumentCreate(CamelRequest):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=10)
    document_type: str = Field(default="manual", min_length=1, max_length=100)
    source: str = Field(default="admin", max_length=255)


class KnowledgeDocumentUpdate(CamelRequest):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=10)


class KnowledgeDocumentListResponse(CamelModel):
    documents: list[KnowledgeDocumentSummary]
    pagination: Pagination


class KnowledgeDocumentEnvelope(CamelModel):
    message: str
    document: KnowledgeDocumentResponse


class MessageResponse(CamelModel):
    message: str


class KnowledgeSearchResponse(CamelModel):
    documents: list[KnowledgeDocumentResponse]


class AdminStatsResponse(CamelModel):
    users: int
    business_ideas: int
    business_plans: int
    knowledge_documents: int
    chat_conversations: int
