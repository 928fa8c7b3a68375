"""Business ideas & plans CRUD API router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.auth.dependencies import get_current_user
from innostart.core.database import get_db
from innostart.models.enums import IdeaStatus, PlanSection
from innostart.modules.ai.sections import decode_stored, normalize_plan
from innostart.modules.business.schemas import (
    BusinessIdeaListResponse,
    BusinessIdeaResponse,
    BusinessIdeaUpdate,
    BusinessPlanListResponse,
    BusinessPlanSections,
    BusinessPlanSummary,
    DashboardResponse,
    SectionUpdate,
    SectionUpdateResponse,
)
from innostart.modules.business.service import BusinessService
from innostart.schemas.auth import CurrentUser
from innostart.schemas.common import Pagination

router = APIRouter(prefix="/business", tags=["Business"])


@router.get("/ideas", response_model=BusinessIdeaListResponse)
async def list_ideas(
    status: Optional[IdeaStatus] = None,
    industry: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessIdeaListResponse:
    """List the caller's ideas, newest first."""
    svc = BusinessService(db, current_user.user_id)
    ideas = await svc.list_ideas(status=status, industry=industry, limit=limit, offset=offset)
    return BusinessIdeaListResponse(
        ideas=[BusinessIdeaResponse.model_validate(i) for i in ideas],
        pagination=Pagination(limit=limit, offset=offset),
    )


@router.get("/ideas/{idea_id}", response_model=BusinessIdeaResponse)
async def get_idea(
    idea_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessIdeaResponse:
    svc = BusinessService(db, current_user.user_id)
    return BusinessIdeaResponse.model_validate(await svc.get_idea(idea_id))


@router.put("/ideas/{idea_id}", response_model=BusinessIdeaResponse)
async def update_idea(
    idea_id: int,
    body: BusinessIdeaUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessIdeaResponse:
    """Update the supplied fields of an idea."""
    svc = BusinessService(db, current_user.user_id)
    return BusinessIdeaResponse.model_validate(await svc.update_idea(idea_id, body))


@router.delete("/ideas/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    idea_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an idea and, by cascade, its plans."""
    svc = BusinessService(db, current_user.user_id)
    await svc.delete_idea(idea_id)


@router.get("/plans", response_model=BusinessPlanListResponse)
async def list_plans(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessPlanListResponse:
    svc = BusinessService(db, current_user.user_id)
    rows = await svc.list_plans(limit=limit, offset=offset)
    return BusinessPlanListResponse(
        plans=[
            BusinessPlanSummary(
                id=plan.id,
                business_idea_id=plan.business_idea_id,
                idea_title=idea_title,
                title=plan.title,
                status=plan.status,
                created_at=plan.created_at,
                updated_at=plan.updated_at,
            )
            for plan, idea_title in rows
        ],
        pagination=Pagination(limit=limit, offset=offset),
    )


@router.get("/plans/{plan_id}", response_model=BusinessPlanSections)
async def get_plan(
    plan_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessPlanSections:
    """A plan with its sections normalized to display text."""
    svc = BusinessService(db, current_user.user_id)
    plan = await svc.get_plan(plan_id)
    return BusinessPlanSections(
        id=plan.id,
        business_idea_id=plan.business_idea_id,
        title=plan.title,
        status=plan.status,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
        **normalize_plan(plan.to_dict()),
    )


@router.put("/plans/{plan_id}/sections/{section}", response_model=SectionUpdateResponse)
async def update_plan_section(
    plan_id: int,
    section: PlanSection,
    body: SectionUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SectionUpdateResponse:
    """Replace one section's text with a manual edit."""
    svc = BusinessService(db, current_user.user_id)
    plan = await svc.update_section(plan_id, section, body.content)
    return SectionUpdateResponse(
        section=section.value,
        content=decode_stored(getattr(plan, section.value)),
        updated_at=plan.updated_at,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    """Idea and plan counts for the caller's home screen."""
    svc = BusinessService(db, current_user.user_id)
    stats = await svc.dashboard()
    stats["recent_ideas"] = [BusinessIdeaResponse.model_validate(i) for i in stats["recent_ideas"]]
    return DashboardResponse.model_validate(stats)
