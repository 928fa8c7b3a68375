"""Business ideas & plans: async DB service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.core.errors import NotFoundError
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation
from innostart.models.enums import IdeaStatus, PlanSection
from innostart.modules.ai.persistence import write_section
from innostart.modules.business.schemas import BusinessIdeaUpdate

logger = structlog.get_logger()


class BusinessService:
    def __init__(self, db: AsyncSession, user_id: int) -> None:
        self.db = db
        self.user_id = user_id

    # ── Ideas ─────────────────────────────────────────────────────────────────

    async def list_ideas(
        self,
        status: IdeaStatus | None = None,
        industry: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[BusinessIdea]:
        stmt = select(BusinessIdea).where(BusinessIdea.user_id == self.user_id)
        if status:
            stmt = stmt.where(BusinessIdea.status == status)
        if industry:
            stmt = stmt.where(BusinessIdea.industry == industry)
        stmt = stmt.order_by(BusinessIdea.created_at.desc(), BusinessIdea.id.desc())
        result = await self.db.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def get_idea(self, idea_id: int) -> BusinessIdea:
        stmt = select(BusinessIdea).where(
            BusinessIdea.id == idea_id,
            BusinessIdea.user_id == self.user_id,
        )
        idea = (await self.db.execute(stmt)).scalar_one_or_none()
        if idea is None:
            raise NotFoundError("Business idea")
        return idea

    async def update_idea(self, idea_id: int, data: BusinessIdeaUpdate) -> BusinessIdea:
        idea = await self.get_idea(idea_id)
        patch = data.model_dump(exclude_unset=True)
        for k, v in patch.items():
            setattr(idea, k, v)
        await self.db.commit()
        await self.db.refresh(idea)
        logger.info("business_idea_updated", idea_id=idea.id, fields=sorted(patch))
        return idea

    async def delete_idea(self, idea_id: int) -> None:
        """Hard delete; the idea's plans go with it."""
        idea = await self.get_idea(idea_id)
        await self.db.delete(idea)
        await self.db.commit()
        logger.info("business_idea_deleted", idea_id=idea_id)

    # ── Plans ─────────────────────────────────────────────────────────────────

    async def list_plans(self, limit: int = 20, offset: int = 0) -> list[tuple[BusinessPlan, str]]:
        stmt = (
            select(BusinessPlan, BusinessIdea.title)
            .join(BusinessIdea, BusinessIdea.id == BusinessPlan.business_idea_id)
            .where(BusinessPlan.user_id == self.user_id)
            .order_by(BusinessPlan.updated_at.desc(), BusinessPlan.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return [(plan, idea_title) for plan, idea_title in result.all()]

    async def get_plan(self, plan_id: int) -> BusinessPlan:
        stmt = select(BusinessPlan).where(
            BusinessPlan.id == plan_id,
            BusinessPlan.user_id == self.user_id,
        )
        plan = (await self.db.execute(stmt)).scalar_one_or_none()
        if plan is None:
            raise NotFoundError("Business plan")
        return plan

    async def update_section(self, plan_id: int, section: PlanSection, content: str) -> BusinessPlan:
        """Manual edit of one section; the other five keep their display text."""
        plan = await self.get_plan(plan_id)
        write_section(plan, section, content)
        await self.db.commit()
        await self.db.refresh(plan)
        logger.info("business_plan_section_edited", plan_id=plan.id, section=section.value)
        return plan

    # ── Dashboard ─────────────────────────────────────────────────────────────

    async def _count(self, model: type, *criteria) -> int:
        stmt = select(func.count()).select_from(model).where(model.user_id == self.user_id, *criteria)
        return (await self.db.execute(stmt)).scalar_one()

    async def dashboard(self) -> dict:
        since = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=7)

        by_status = await self.db.execute(
            select(BusinessIdea.status, func.count())
            .where(BusinessIdea.user_id == self.user_id)
            .group_by(BusinessIdea.status)
        )
        industries = await self.db.execute(
            select(BusinessIdea.industry, func.count().label("n"))
            .where(BusinessIdea.user_id == self.user_id)
            .group_by(BusinessIdea.industry)
            .order_by(func.count().desc(), BusinessIdea.industry)
            .limit(5)
        )

        return {
            "total_ideas": await self._count(BusinessIdea),
            "total_plans": await self._count(BusinessPlan),
            "total_conversations": await self._count(ChatConversation),
            "ideas_by_status": [
                {"status": status, "count": count} for status, count in by_status.all()
            ],
            "top_industries": [
                {"industry": industry, "count": count} for industry, count in industries.all()
            ],
            "ideas_last_7_days": await self._count(BusinessIdea, BusinessIdea.created_at >= since),
            "recent_ideas": await self.list_ideas(limit=5),
        }
