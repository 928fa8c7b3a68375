"""Knowledge base: async DB service for curated documents and platform stats."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.core.errors import NotFoundError
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation
from innostart.models.core import User
from innostart.models.knowledge import KnowledgeDocument
from innostart.modules.knowledge.schemas import KnowledgeDocumentCreate, KnowledgeDocumentUpdate

logger = structlog.get_logger()

WORD_DOCUMENT_TYPES = frozenset({
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
PDF_DOCUMENT_TYPE = "application/pdf"


class UnsupportedUpload(ValueError):
    """The uploaded file is neither text, PDF nor a Word document."""


def is_supported_upload(content_type: str | None) -> bool:
    content_type = (content_type or "").split(";")[0].strip().lower()
    return (
        content_type.startswith("text/")
        or content_type == PDF_DOCUMENT_TYPE
        or content_type in WORD_DOCUMENT_TYPES
    )


def upload_text(filename: str, content_type: str, raw: bytes) -> str:
    """Document text for an upload.

    Text files are stored as decoded. PDF and Word files are recorded with a
    placeholder naming the file, since their contents are not extracted.
    """
    if content_type.startswith("text/"):
        return raw.decode("utf-8", errors="replace")
    return (
        f"File: {filename}\nType: {content_type}\n"
        "Content processing not implemented for this file type."
    )


def word_count(text: str) -> int:
    return len(text.split())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnowledgeService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_documents(
        self,
        document_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[KnowledgeDocument]:
        stmt = select(KnowledgeDocument)
        if document_type:
            stmt = stmt.where(KnowledgeDocument.document_type == document_type)
        stmt = stmt.order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id.desc())
        result = await self.db.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def get_document(self, document_id: int) -> KnowledgeDocument:
        document = await self.db.get(KnowledgeDocument, document_id)
        if document is None:
            raise NotFoundError("Knowledge document")
        return document

    async def _insert(self, **fields: Any) -> KnowledgeDocument:
        document = KnowledgeDocument(**fields)
        self.db.add(document)
        await self.db.commit()
        await self.db.refresh(document)
        logger.info(
            "knowledge_document_added",
            document_id=document.id,
            document_type=document.document_type,
            source=document.source,
        )
        return document

    async def create_document(self, data: KnowledgeDocumentCreate, added_by: str) -> KnowledgeDocument:
        return await self._insert(
            title=data.title,
            content=data.content,
            document_type=data.document_type,
            source=data.source,
            doc_metadata={
                "word_count": word_count(data.content),
                "added_by": added_by,
                "added_at": _now(),
            },
        )

    async def upload_document(
        self,
        filename: str,
        content_type: str | None,
        raw: bytes,
        uploaded_by: str,
        document_type: str = "uploaded",
        source: str = "file_upload",
    ) -> KnowledgeDocument:
        if not is_supported_upload(content_type):
            raise UnsupportedUpload(content_type or "unknown")
        content_type = (content_type or "").split(";")[0].strip().lower()
        content = upload_text(filename, content_type, raw)
        return await self._insert(
            title=(PurePath(filename).stem or filename)[:255],
            content=content,
            document_type=document_type,
            source=source,
            doc_metadata={
                "original_filename": filename,
                "file_type": content_type,
                "word_count": word_count(content),
                "uploaded_by": uploaded_by,
                "uploaded_at": _now(),
            },
        )

    async def update_document(self, document_id: int, data: KnowledgeDocumentUpdate) -> KnowledgeDocument:
        document = await self.get_document(document_id)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        for k, v in patch.items():
            setattr(document, k, v)
        if "content" in patch:
            document.doc_metadata = {
                **(document.doc_metadata or {}),
                "word_count": word_count(patch["content"]),
            }
        await self.db.commit()
        await self.db.refresh(document)
        logger.info("knowledge_document_updated", document_id=document.id, fields=sorted(patch))
        return document

    async def delete_document(self, document_id: int) -> None:
        document = await self.get_document(document_id)
        await self.db.delete(document)
        await self.db.commit()
        logger.info("knowledge_document_deleted", document_id=document_id)

    async def search(self, query: str, limit: int = 10) -> list[KnowledgeDocument]:
        """Documents whose title or content contains ``query``, case-insensitively."""
        pattern = f"%{query}%"
        stmt = (
            select(KnowledgeDocument)
            .where(or_(KnowledgeDocument.title.ilike(pattern), KnowledgeDocument.content.ilike(pattern)))
            .order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def stats(self) -> dict[str, int]:
        """Row counts across the platform."""

        async def count(model: type) -> int:
            return (await self.db.execute(select(func.count()).select_from(model))).scalar_one()

        return {
            "users": await count(User),
            "business_ideas": await count(BusinessIdea),
            "business_plans": await count(BusinessPlan),
            "knowledge_documents": await count(KnowledgeDocument),
            "chat_conversations": await count(ChatConversation),
        }
