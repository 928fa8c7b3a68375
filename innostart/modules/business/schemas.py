"""Business ideas & plans: Pydantic v2 request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from innostart.models.enums import BusinessPlanStatus, IdeaStatus
from innostart.schemas.common import CamelModel, CamelRequest, EntityModel, Pagination


class BusinessIdeaResponse(EntityModel):
    id: int
    title: str
    description: str
    industry: str
    target_market: str
    initial_investment: float
    expected_revenue: float
    success_probability: int
    status: IdeaStatus
    location: str | None
    budget_range: str | None
    created_at: datetime
    updated_at: datetime


class BusinessIdeaUpdate(CamelRequest):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    industry: str | None = Field(default=None, max_length=100)
    target_market: str | None = None
    initial_investment: float | None = Field(default=None, ge=0)
    expected_revenue: float | None = Field(default=None, ge=0)
    success_probability: int | None = Field(default=None, ge=0, le=100)
    status: IdeaStatus | None = None


class BusinessIdeaListResponse(CamelModel):
    ideas: list[BusinessIdeaResponse]
    pagination: Pagination


class BusinessPlanSections(EntityModel):
    """A plan with every section as display-ready text."""

    id: int
    business_idea_id: int
    title: str
    executive_summary: str
    market_analysis: str
    financial_projections: str
    marketing_strategy: str
    operations_plan: str
    risk_analysis: str
    status: BusinessPlanStatus
    created_at: datetime
    updated_at: datetime


class BusinessPlanSummary(EntityModel):
    id: int
    business_idea_id: int
    idea_title: str
    title: str
    status: BusinessPlanStatus
    created_at: datetime
    updated_at: datetime


class BusinessPlanListResponse(CamelModel):
    plans: list[BusinessPlanSummary]
    pagination: Pagination


class SectionUpdate(CamelRequest):
    content: str = Field(default="", max_length=100_000)


class SectionUpdateResponse(CamelModel):
    section: str
    content: str
    updated_at: datetime


class StatusCount(EntityModel):
    status: IdeaStatus
    count: int


class IndustryCount(EntityModel):
    industry: str
    count: int


class DashboardResponse(CamelModel):
    total_ideas: int
    total_plans: int
    total_conversations: int
    ideas_by_status: list[StatusCount]
    top_industries: list[IndustryCount]
    ideas_last_7_days: int
    recent_ideas: list[BusinessIdeaResponse]
