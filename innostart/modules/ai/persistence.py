"""PlanPersistenceAdapter: the only pipeline component that reads or writes storage.

Ownership is always part of the query predicate. A row that exists but belongs
to someone else is indistinguishable from a missing one.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.core.errors import NotFoundError
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation, ChatMessage
from innostart.models.enums import BusinessPlanStatus, ChatRole, IdeaStatus, PlanSection
from innostart.modules.ai.sections import SECTION_NAMES, serialize_section, split_legacy_plan

logger = structlog.get_logger()


def write_section(plan: BusinessPlan, section: PlanSection, content: str) -> None:
    """Set one section column of an existing plan and mark it modified.

    A legacy row is split into its six columns first, in the same unit of
    work, so the untouched sections keep displaying what they did before.
    """
    columns = split_legacy_plan({name: getattr(plan, name) for name in SECTION_NAMES})
    if columns is not None:
        for name, value in columns.items():
            setattr(plan, name, value)
        logger.info("legacy_plan_split", plan_id=plan.id)
    setattr(plan, section.value, content)
    # onupdate only fires when a column changes; regenerating identical
    # text still counts as a modification
    plan.updated_at = func.now()


class PlanPersistenceAdapter:
    def __init__(self, db: AsyncSession, user_id: int) -> None:
        self.db = db
        self.user_id = user_id

    # ── Ideas ─────────────────────────────────────────────────────────────────

    async def get_owned_idea(self, idea_id: int) -> BusinessIdea:
        stmt = select(BusinessIdea).where(
            BusinessIdea.id == idea_id,
            BusinessIdea.user_id == self.user_id,
        )
        idea = (await self.db.execute(stmt)).scalar_one_or_none()
        if idea is None:
            raise NotFoundError("Business idea")
        return idea

    async def save_ideas(
        self,
        ideas: Sequence[Mapping[str, Any]],
        location: str,
        budget_range: str,
    ) -> list[BusinessIdea]:
        rows = [
            BusinessIdea(
                user_id=self.user_id,
                status=IdeaStatus.DRAFT,
                location=location,
                budget_range=budget_range,
                **dict(fields),
            )
            for fields in ideas
        ]
        self.db.add_all(rows)
        await self.db.commit()
        for row in rows:
            await self.db.refresh(row)
        logger.info("business_ideas_saved", user_id=self.user_id, count=len(rows))
        return rows

    # ── Plans ─────────────────────────────────────────────────────────────────

    async def create_plan(
        self,
        idea: BusinessIdea,
        title: str,
        sections: Mapping[str, Any],
    ) -> BusinessPlan:
        """Insert one plan row with all six columns taken from ``sections``."""
        plan = BusinessPlan(
            user_id=self.user_id,
            business_idea_id=idea.id,
            title=title[:255],
            status=BusinessPlanStatus.DRAFT,
            **{name: serialize_section(sections.get(name)) for name in SECTION_NAMES},
        )
        self.db.add(plan)
        await self.db.commit()
        await self.db.refresh(plan)
        logger.info("business_plan_created", plan_id=plan.id, idea_id=idea.id)
        return plan

    async def latest_plan_for_idea(self, idea_id: int) -> BusinessPlan | None:
        stmt = (
            select(BusinessPlan)
            .where(
                BusinessPlan.business_idea_id == idea_id,
                BusinessPlan.user_id == self.user_id,
            )
            .order_by(BusinessPlan.id.desc())
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def upsert_section(
        self,
        idea: BusinessIdea,
        section: PlanSection,
        content: str,
    ) -> BusinessPlan:
        """Write exactly one column of the idea's most recent plan.

        Creates the plan, with the other five columns null, when none exists.
        Concurrent writes to the same column are last-write-wins.
        """
        plan = await self.latest_plan_for_idea(idea.id)
        if plan is None:
            plan = BusinessPlan(
                user_id=self.user_id,
                business_idea_id=idea.id,
                title=f"{idea.title} - Business Plan"[:255],
                status=BusinessPlanStatus.DRAFT,
            )
            setattr(plan, section.value, content)
            self.db.add(plan)
            action = "created"
        else:
            write_section(plan, section, content)
            action = "updated"

        await self.db.commit()
        await self.db.refresh(plan)
        logger.info(
            "business_plan_section_saved",
            plan_id=plan.id,
            idea_id=idea.id,
            section=section.value,
            action=action,
        )
        return plan

    async def get_owned_plan(self, plan_id: int) -> BusinessPlan:
        stmt = select(BusinessPlan).where(
            BusinessPlan.id == plan_id,
            BusinessPlan.user_id == self.user_id,
        )
        plan = (await self.db.execute(stmt)).scalar_one_or_none()
        if plan is None:
            raise NotFoundError("Business plan")
        return plan

    # ── Conversations ─────────────────────────────────────────────────────────

    async def get_owned_conversation(self, conversation_id: int) -> ChatConversation:
        stmt = select(ChatConversation).where(
            ChatConversation.id == conversation_id,
            ChatConversation.user_id == self.user_id,
        )
        conversation = (await self.db.execute(stmt)).scalar_one_or_none()
        if conversation is None:
            raise NotFoundError("Conversation")
        return conversation

    async def get_or_create_conversation(
        self,
        conversation_id: int | None,
        business_idea_id: int | None = None,
    ) -> ChatConversation:
        if conversation_id is not None:
            return await self.get_owned_conversation(conversation_id)

        conversation = ChatConversation(
            user_id=self.user_id,
            business_idea_id=business_idea_id,
            title="New Conversation",
        )
        self.db.add(conversation)
        await self.db.flush()
        logger.info("chat_conversation_created", conversation_id=conversation.id)
        return conversation

    async def append_messages(
        self,
        conversation: ChatConversation,
        turns: Sequence[tuple[ChatRole, str]],
    ) -> list[ChatMessage]:
        """Append ``turns`` in order under a single commit."""
        messages = [
            ChatMessage(conversation_id=conversation.id, role=role, content=content)
            for role, content in turns
        ]
        self.db.add_all(messages)
        conversation.updated_at = func.now()
        await self.db.commit()
        for message in messages:
            await self.db.refresh(message)
        return messages

    async def list_messages(self, conversation: ChatConversation) -> list[ChatMessage]:
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation.id)
            .order_by(ChatMessage.id.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_conversations(self, limit: int = 20, offset: int = 0) -> list[ChatConversation]:
        stmt = (
            select(ChatConversation)
            .where(ChatConversation.user_id == self.user_id)
            .order_by(ChatConversation.updated_at.desc(), ChatConversation.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
