"""Generation pipeline: prompt → model → extraction → mapping → persistence.

Every stage runs strictly after the previous one. The model call is the only
long suspension; nothing is written until it has returned, so a cancelled
request leaves storage untouched.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from innostart.core.config import settings
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation, ChatMessage
from innostart.models.enums import ChatRole, PlanSection
from innostart.modules.ai import prompts
from innostart.modules.ai.extraction import ExtractionSource, extract, extract_ideas
from innostart.modules.ai.gateway import ModelGateway
from innostart.modules.ai.persistence import PlanPersistenceAdapter
from innostart.modules.ai.sections import (
    ideas_from_extraction,
    normalize_plan,
    sections_from_extraction,
)

logger = structlog.get_logger()

_IDEA_CONTEXT_FIELDS = (
    "title",
    "description",
    "industry",
    "target_market",
    "initial_investment",
    "expected_revenue",
    "success_probability",
)


def idea_context(idea: BusinessIdea) -> dict[str, Any]:
    """The idea attributes a prompt may interpolate."""
    return {key: getattr(idea, key) for key in _IDEA_CONTEXT_FIELDS}


class GenerationService:
    def __init__(self, db: AsyncSession, user_id: int, gateway: ModelGateway) -> None:
        self.store = PlanPersistenceAdapter(db, user_id)
        self.gateway = gateway
        self.user_id = user_id
        self.currency = settings.CURRENCY
        self.country = settings.COUNTRY

    async def generate_ideas(self, user_input: str, location: str, budget: str) -> list[BusinessIdea]:
        prompt = prompts.build_ideas_prompt(
            user_input, location, budget, self.currency, self.country
        )
        completion = await self.gateway.complete(prompt)
        result = extract_ideas(completion)
        logger.info("ideas_extracted", user_id=self.user_id, source=result.source.value)

        ideas = ideas_from_extraction(result)
        if not ideas:
            return []
        return await self.store.save_ideas(ideas, location=location, budget_range=budget)

    async def generate_business_plan(
        self, idea_id: int, location: str, budget: str
    ) -> tuple[BusinessPlan, Any]:
        """Generate and store a whole plan.

        Returns the stored row and the generation result as the client sees
        it: the parsed object, or ``{title, content[, sections]}`` when the
        completion was not JSON.
        """
        idea = await self.store.get_owned_idea(idea_id)
        prompt = prompts.build_business_plan_prompt(
            idea_context(idea), location, budget, self.currency, self.country
        )
        completion = await self.gateway.complete(prompt)
        result = extract(completion, prefer="object")
        logger.info("business_plan_extracted", idea_id=idea.id, source=result.source.value)

        default_title = f"{idea.title} - Business Plan"
        if result.source is ExtractionSource.STRICT and isinstance(result.data, dict):
            raw: Any = result.data
            title = str(raw.get("title") or default_title)
        else:
            raw = {"title": default_title, "content": completion}
            if result.source is ExtractionSource.HEURISTIC:
                raw["sections"] = result.data
            title = default_title

        plan = await self.store.create_plan(idea, title, sections_from_extraction(result))
        return plan, raw

    async def generate_financial_projection(self, idea_id: int, location: str, budget: str) -> Any:
        """Projections are returned to the caller but not stored."""
        idea = await self.store.get_owned_idea(idea_id)
        prompt = prompts.build_financial_projection_prompt(
            idea_context(idea), location, budget, self.currency, self.country
        )
        completion = await self.gateway.complete(prompt)
        result = extract(completion, prefer="object")
        logger.info("financial_projection_extracted", idea_id=idea.id, source=result.source.value)

        if result.source is ExtractionSource.STRICT:
            return result.data
        return {"title": f"{idea.title} - Financial Projections", "content": completion}

    async def generate_section(
        self, idea_id: int, section: PlanSection, existing_content: str = ""
    ) -> str:
        idea = await self.store.get_owned_idea(idea_id)
        location = idea.location or settings.DEFAULT_LOCATION
        budget = idea.budget_range or settings.DEFAULT_BUDGET_RANGE
        prompt = prompts.build_section_prompt(
            idea_context(idea),
            section,
            location,
            budget,
            self.currency,
            self.country,
            existing_content=existing_content,
        )
        content = (await self.gateway.complete(prompt)).strip()
        await self.store.upsert_section(idea, section, content)
        return content

    async def chat(
        self,
        message: str,
        conversation_id: int | None,
        location: str,
        budget: str,
        business_sector: str,
        business_idea_id: int | None = None,
    ) -> tuple[str, ChatConversation]:
        # Everything that can 404 is resolved before the model call, and
        # nothing is written until the reply is in hand.
        idea = await self.store.get_owned_idea(business_idea_id) if business_idea_id else None
        conversation = (
            await self.store.get_owned_conversation(conversation_id)
            if conversation_id is not None
            else None
        )
        history = (
            [
                {"role": m.role.value, "content": m.content}
                for m in await self.store.list_messages(conversation)
            ]
            if conversation is not None
            else []
        )

        prompt = prompts.build_chat_prompt(
            message,
            history,
            location,
            budget,
            business_sector,
            self.currency,
            self.country,
            business_context=idea_context(idea) if idea else None,
        )
        reply = (await self.gateway.complete(prompt)).strip()

        if conversation is None:
            conversation = await self.store.get_or_create_conversation(
                None, business_idea_id=idea.id if idea else None
            )
        await self.store.append_messages(
            conversation, [(ChatRole.USER, message), (ChatRole.ASSISTANT, reply)]
        )
        logger.info(
            "chat_reply_saved",
            conversation_id=conversation.id,
            history_turns=len(history),
            reply_chars=len(reply),
        )
        return reply, conversation

    async def get_business_plan(self, plan_id: int) -> tuple[BusinessPlan, BusinessIdea, dict[str, str]]:
        plan = await self.store.get_owned_plan(plan_id)
        idea = await self.store.get_owned_idea(plan.business_idea_id)
        return plan, idea, normalize_plan(plan.to_dict())

    async def list_conversations(self, limit: int, offset: int) -> list[ChatConversation]:
        return await self.store.list_conversations(limit=limit, offset=offset)

    async def conversation_messages(self, conversation_id: int) -> list[ChatMessage]:
        conversation = await self.store.get_owned_conversation(conversation_id)
        return await self.store.list_messages(conversation)
