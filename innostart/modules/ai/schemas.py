"""AI generation: Pydantic v2 request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from innostart.core.config import settings
from innostart.models.enums import ChatRole, PlanSection
from innostart.modules.business.schemas import BusinessIdeaResponse, BusinessPlanSections
from innostart.schemas.common import CamelModel, CamelRequest, EntityModel, Pagination

# ── Requests ──────────────────────────────────────────────────────────────────


class GenerateIdeasRequest(CamelRequest):
    input: str = Field(..., min_length=10, max_length=5000)
    location: str = Field(default=settings.DEFAULT_LOCATION, max_length=255)
    budget: str = Field(default=settings.DEFAULT_BUDGET_RANGE, max_length=50)


class ChatRequest(CamelRequest):
    message: str = Field(..., min_length=1, max_length=5000)
    conversation_id: int | None = None
    business_idea_id: int | None = None
    location: str = Field(default=settings.DEFAULT_LOCATION, max_length=255)
    budget: str = Field(default="", max_length=50)
    business_sector: str = Field(default="", max_length=100)


class GenerateForIdeaRequest(CamelRequest):
    business_idea_id: int
    location: str = Field(default=settings.DEFAULT_LOCATION, max_length=255)
    budget: str = Field(default=settings.DEFAULT_BUDGET_RANGE, max_length=50)


class GenerateSectionRequest(CamelRequest):
    section: PlanSection
    business_idea_id: int
    content: str = Field(default="", max_length=100_000)


# ── Responses ─────────────────────────────────────────────────────────────────


class GenerateIdeasResponse(CamelModel):
    message: str
    ideas: list[BusinessIdeaResponse]


class ChatResponse(CamelModel):
    message: str
    conversation_id: int


class GenerateBusinessPlanResponse(CamelModel):
    message: str
    plan_id: int
    business_plan: Any


class GenerateFinancialProjectionResponse(CamelModel):
    message: str
    projection_id: int
    financial_projection: Any


class GenerateSectionResponse(CamelModel):
    content: str


class BusinessPlanDetailResponse(CamelModel):
    business_idea: BusinessIdeaResponse
    business_plan: BusinessPlanSections


class ConversationResponse(EntityModel):
    id: int
    title: str
    business_idea_id: int | None
    created_at: datetime
    updated_at: datetime


class ConversationListResponse(CamelModel):
    conversations: list[ConversationResponse]
    pagination: Pagination


class ChatMessageResponse(EntityModel):
    id: int
    role: ChatRole
    content: str
    created_at: datetime


class ChatMessageListResponse(CamelModel):
    messages: list[ChatMessageResponse]
