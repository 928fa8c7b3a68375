"""Knowledge base API: admin curation, platform stats and document search."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.auth.dependencies import get_current_user, require_admin
from innostart.core.database import get_db
from innostart.modules.knowledge.schemas import (
    AdminStatsResponse,
    KnowledgeDocumentCreate,
    KnowledgeDocumentEnvelope,
    KnowledgeDocumentListResponse,
    KnowledgeDocumentResponse,
    KnowledgeDocumentSummary,
    KnowledgeDocumentUpdate,
    KnowledgeSearchResponse,
    MessageResponse,
)
from innostart.modules.knowledge.service import KnowledgeService, UnsupportedUpload
from innostart.schemas.auth import CurrentUser
from innostart.schemas.common import Pagination

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["Admin"])
search_router = APIRouter(prefix="/ai", tags=["AI"])


@router.get("/knowledge", response_model=KnowledgeDocumentListResponse)
async def list_documents(
    document_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeDocumentListResponse:
    """List documents, newest first, without their content."""
    docs = await KnowledgeService(db).list_documents(
        document_type=document_type, limit=limit, offset=offset
    )
    return KnowledgeDocumentListResponse(
        documents=[KnowledgeDocumentSummary.model_validate(d) for d in docs],
        pagination=Pagination(limit=limit, offset=offset),
    )


@router.post(
    "/knowledge",
    response_model=KnowledgeDocumentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_document(
    body: KnowledgeDocumentCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeDocumentEnvelope:
    document = await KnowledgeService(db).create_document(body, added_by=admin.email)
    return KnowledgeDocumentEnvelope(
        message="Knowledge document added successfully",
        document=KnowledgeDocumentResponse.model_validate(document),
    )


@router.post(
    "/knowledge/upload",
    response_model=KnowledgeDocumentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    file: UploadFile = File(...),
    document_type: str = Form("uploaded", max_length=100),
    source: str = Form("file_upload", max_length=255),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeDocumentEnvelope:
    """Add a document from a text, PDF or Word file.

    Only text files have their contents stored; the body size limit applies.
    """
    raw = await file.read()
    try:
        document = await KnowledgeService(db).upload_document(
            filename=file.filename or "upload",
            content_type=file.content_type,
            raw=raw,
            uploaded_by=admin.email,
            document_type=document_type,
            source=source,
        )
    except UnsupportedUpload as e:
        logger.warning("knowledge_upload_rejected", content_type=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only text, PDF, and Word documents are allowed.",
        ) from e
    return KnowledgeDocumentEnvelope(
        message="File uploaded and processed successfully",
        document=KnowledgeDocumentResponse.model_validate(document),
    )


@router.put("/knowledge/{document_id}", response_model=KnowledgeDocumentEnvelope)
async def update_document(
    document_id: int,
    body: KnowledgeDocumentUpdate,
    _admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeDocumentEnvelope:
    if body.title is None and body.content is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid fields to update",
        )
    document = await KnowledgeService(db).update_document(document_id, body)
    return KnowledgeDocumentEnvelope(
        message="Knowledge document updated successfully",
        document=KnowledgeDocumentResponse.model_validate(document),
    )


@router.delete("/knowledge/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    _admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await KnowledgeService(db).delete_document(document_id)
    return MessageResponse(message="Knowledge document deleted successfully")


@router.get("/stats", response_model=AdminStatsResponse)
async def platform_stats(
    _admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(await KnowledgeService(db).stats())


@search_router.get("/search-knowledge", response_model=KnowledgeSearchResponse)
async def search_knowledge(
    query: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(10, ge=1, le=50),
    _user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeSearchResponse:
    """Any signed-in user may search the knowledge base."""
    if not query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required",
        )
    docs = await KnowledgeService(db).search(query.strip(), limit=limit)
    return KnowledgeSearchResponse(
        documents=[KnowledgeDocumentResponse.model_validate(d) for d in docs]
    )
