"""AI generation API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.auth.dependencies import get_current_user
from innostart.core.database import get_db
from innostart.modules.ai.gateway import ModelGateway, get_model_gateway
from innostart.modules.ai.schemas import (
    BusinessPlanDetailResponse,
    ChatMessageListResponse,
    ChatMessageResponse,
    ChatRequest,
    ChatResponse,
    ConversationListResponse,
    ConversationResponse,
    GenerateBusinessPlanResponse,
    GenerateFinancialProjectionResponse,
    GenerateForIdeaRequest,
    GenerateIdeasRequest,
    GenerateIdeasResponse,
    GenerateSectionRequest,
    GenerateSectionResponse,
)
from innostart.modules.ai.service import GenerationService
from innostart.modules.business.schemas import BusinessIdeaResponse, BusinessPlanSections
from innostart.schemas.auth import CurrentUser
from innostart.schemas.common import Pagination

router = APIRouter(prefix="/ai", tags=["AI"])


def _service(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> GenerationService:
    return GenerationService(db, current_user.user_id, gateway)


@router.post("/generate-ideas", response_model=GenerateIdeasResponse)
async def generate_ideas(
    body: GenerateIdeasRequest,
    svc: GenerationService = Depends(_service),
) -> GenerateIdeasResponse:
    """Generate and store a batch of business ideas for the caller."""
    ideas = await svc.generate_ideas(body.input, body.location, body.budget)
    return GenerateIdeasResponse(
        message="Business ideas generated successfully",
        ideas=[BusinessIdeaResponse.model_validate(i) for i in ideas],
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    svc: GenerationService = Depends(_service),
) -> ChatResponse:
    """One chat turn; starts a conversation when no conversationId is given."""
    reply, conversation = await svc.chat(
        body.message,
        body.conversation_id,
        location=body.location,
        budget=body.budget,
        business_sector=body.business_sector,
        business_idea_id=body.business_idea_id,
    )
    return ChatResponse(message=reply, conversation_id=conversation.id)


@router.post("/generate-business-plan", response_model=GenerateBusinessPlanResponse)
async def generate_business_plan(
    body: GenerateForIdeaRequest,
    svc: GenerationService = Depends(_service),
) -> GenerateBusinessPlanResponse:
    plan, raw = await svc.generate_business_plan(body.business_idea_id, body.location, body.budget)
    return GenerateBusinessPlanResponse(
        message="Business plan generated successfully",
        plan_id=plan.id,
        business_plan=raw,
    )


@router.post("/generate-financial-projection", response_model=GenerateFinancialProjectionResponse)
async def generate_financial_projection(
    body: GenerateForIdeaRequest,
    svc: GenerationService = Depends(_service),
) -> GenerateFinancialProjectionResponse:
    """Projections are not stored; the projection id echoes the idea id."""
    projection = await svc.generate_financial_projection(
        body.business_idea_id, body.location, body.budget
    )
    return GenerateFinancialProjectionResponse(
        message="Financial projection generated successfully",
        projection_id=body.business_idea_id,
        financial_projection=projection,
    )


@router.post("/generate-business-plan-section", response_model=GenerateSectionResponse)
async def generate_business_plan_section(
    body: GenerateSectionRequest,
    svc: GenerationService = Depends(_service),
) -> GenerateSectionResponse:
    """Generate one section and write it to the idea's latest plan."""
    content = await svc.generate_section(body.business_idea_id, body.section, body.content)
    return GenerateSectionResponse(content=content)


@router.get("/business-plan/{plan_id}", response_model=BusinessPlanDetailResponse)
async def get_business_plan(
    plan_id: int,
    svc: GenerationService = Depends(_service),
) -> BusinessPlanDetailResponse:
    """A stored plan with every section normalized to display text."""
    plan, idea, sections = await svc.get_business_plan(plan_id)
    return BusinessPlanDetailResponse(
        business_idea=BusinessIdeaResponse.model_validate(idea),
        business_plan=BusinessPlanSections(
            id=plan.id,
            business_idea_id=plan.business_idea_id,
            title=plan.title,
            status=plan.status,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
            **sections,
        ),
    )


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: GenerationService = Depends(_service),
) -> ConversationListResponse:
    conversations = await svc.list_conversations(limit=limit, offset=offset)
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations],
        pagination=Pagination(limit=limit, offset=offset),
    )


@router.get("/conversations/{conversation_id}/messages", response_model=ChatMessageListResponse)
async def conversation_messages(
    conversation_id: int,
    svc: GenerationService = Depends(_service),
) -> ChatMessageListResponse:
    messages = await svc.conversation_messages(conversation_id)
    return ChatMessageListResponse(
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
    )
