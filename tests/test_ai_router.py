"""HTTP tests for the AI generation endpoints.

The model is replaced by ``FakeGateway``; everything else (routing, validation,
extraction, mapping and persistence) runs for real against SQLite.
"""

import json

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import OTHER_USER_ID, USER_ID, FakeGateway
from innostart.core.errors import ModelEmptyResponse, ModelUnavailable
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation, ChatMessage
from innostart.models.enums import BusinessPlanStatus, ChatRole

pytestmark = pytest.mark.anyio

IDEAS_JSON = json.dumps([
    {
        "title": "Volcano Coffee Tours",
        "description": "Farm visits.",
        "industry": "Tourism",
        "targetMarket": "Tourists",
        "initialInvestment": 150000,
        "expectedRevenue": 60000,
        "successProbability": 72,
    },
    {
        "title": "Gorilla Crafts",
        "description": "Souvenirs.",
        "industry": "Retail",
        "targetMarket": "Visitors",
        "initialInvestment": 90000,
        "expectedRevenue": 30000,
        "successProbability": 60,
    },
])

PLAN_JSON = json.dumps({
    "title": "Volcano Coffee Tours Plan",
    "executiveSummary": "Coffee tours for visitors.",
    "marketAnalysis": "Growing tourism.",
    "financialProjections": {"revenue": {"year1": 720000}},
    "marketingSales": "Hotels and Instagram.",
    "operationsPlan": "Two guides.",
    "riskAnalysis": "Rainy season.",
    "implementationTimeline": "Q1 launch.",
})


async def _plan_rows(db: AsyncSession) -> list[BusinessPlan]:
    return list((await db.execute(select(BusinessPlan).order_by(BusinessPlan.id))).scalars().all())


class TestGenerateIdeas:
    async def test_ideas_generated_and_stored(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Here you go:\n" + IDEAS_JSON]
        resp = await test_client.post(
            "/ai/generate-ideas",
            json={"input": "tourism ideas near the volcanoes", "location": "Musanze", "budget": "50000-200000"},
        )
        assert resp.status_code == 200
        ideas = resp.json()["ideas"]
        assert [i["title"] for i in ideas] == ["Volcano Coffee Tours", "Gorilla Crafts"]
        assert ideas[0]["initial_investment"] == 150000
        assert ideas[0]["target_market"] == "Tourists"
        assert ideas[0]["status"] == "draft"
        assert ideas[0]["budget_range"] == "50000-200000"

        stored = (await db.execute(select(BusinessIdea))).scalars().all()
        assert len(stored) == 2
        assert all(i.user_id == USER_ID and i.location == "Musanze" for i in stored)
        assert "50,000 - 200,000 RWF" in fake_gateway.prompts[0]

    async def test_defaults_applied_for_location_and_budget(
        self, test_client: AsyncClient, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = [IDEAS_JSON]
        resp = await test_client.post("/ai/generate-ideas", json={"input": "agriculture ideas please"})
        assert resp.status_code == 200
        assert resp.json()["ideas"][0]["location"] == "Musanze"
        assert "Location: Musanze" in fake_gateway.prompts[0]

    async def test_heuristic_ideas(self, test_client: AsyncClient, fake_gateway: FakeGateway):
        fake_gateway.replies = [
            "1. Mountain Bike Rentals\nDescription: Bikes for tourists.\nInitial Investment: 180,000 RWF\n"
        ]
        resp = await test_client.post("/ai/generate-ideas", json={"input": "outdoor tourism business"})
        assert resp.status_code == 200
        (idea,) = resp.json()["ideas"]
        assert idea["title"] == "Mountain Bike Rentals"
        assert idea["initial_investment"] == 180000
        assert idea["success_probability"] == 50

    async def test_unusable_output_returns_empty_list(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["sorry, no ideas right now."]
        resp = await test_client.post("/ai/generate-ideas", json={"input": "anything at all here"})
        assert resp.status_code == 200
        assert resp.json()["ideas"] == []
        assert (await db.execute(select(BusinessIdea))).scalars().all() == []

    async def test_out_of_budget_figures_persisted_verbatim(
        self, test_client: AsyncClient, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ['[{"title": "Hotel", "initialInvestment": 25000000}]']
        resp = await test_client.post(
            "/ai/generate-ideas", json={"input": "hospitality business", "budget": "50000-200000"}
        )
        assert resp.json()["ideas"][0]["initial_investment"] == 25000000

    async def test_short_input_is_400(self, test_client: AsyncClient, fake_gateway: FakeGateway):
        resp = await test_client.post("/ai/generate-ideas", json={"input": "   short   "})
        assert resp.status_code == 400
        errors = resp.json()["errors"]
        assert errors[0]["field"] == "input"
        assert fake_gateway.prompts == []

    async def test_missing_input_is_400(self, test_client: AsyncClient):
        resp = await test_client.post("/ai/generate-ideas", json={})
        assert resp.status_code == 400
        assert "errors" in resp.json()


class TestGenerateBusinessPlan:
    async def test_strict_plan_stored_per_column(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = [PLAN_JSON]
        resp = await test_client.post(
            "/ai/generate-business-plan",
            json={"businessIdeaId": sample_idea.id, "location": "Musanze", "budget": "50000-200000"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["businessPlan"]["implementationTimeline"] == "Q1 launch."

        plan = await db.get(BusinessPlan, body["planId"])
        assert plan.title == "Volcano Coffee Tours Plan"
        assert plan.status is BusinessPlanStatus.DRAFT
        assert plan.executive_summary == "Coffee tours for visitors."
        assert plan.marketing_strategy == "Hotels and Instagram."
        assert json.loads(plan.financial_projections) == {"revenue": {"year1": 720000}}
        assert "- Title: Volcano Coffee Tours" in fake_gateway.prompts[0]

    async def test_heuristic_plan(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["EXECUTIVE SUMMARY:\nTours.\nRISK ANALYSIS:\nRain."]
        resp = await test_client.post("/ai/generate-business-plan", json={"businessIdeaId": sample_idea.id})
        assert resp.status_code == 200
        body = resp.json()
        assert body["businessPlan"]["title"] == "Volcano Coffee Tours - Business Plan"
        assert body["businessPlan"]["sections"] == {"executive_summary": "Tours.", "risk_analysis": "Rain."}

        plan = await db.get(BusinessPlan, body["planId"])
        assert plan.executive_summary == "Tours."
        assert plan.risk_analysis == "Rain."
        assert plan.market_analysis is None

    async def test_unusable_output_persisted_as_summary(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["i could not produce a plan, sorry."]
        resp = await test_client.post("/ai/generate-business-plan", json={"businessIdeaId": sample_idea.id})
        assert resp.status_code == 200
        plan = await db.get(BusinessPlan, resp.json()["planId"])
        assert plan.executive_summary == "i could not produce a plan, sorry."

    async def test_other_users_idea_is_404(
        self, test_client: AsyncClient, db: AsyncSession, other_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        resp = await test_client.post("/ai/generate-business-plan", json={"businessIdeaId": other_idea.id})
        assert resp.status_code == 404
        assert "Honey" not in resp.text
        assert fake_gateway.prompts == []
        assert await _plan_rows(db) == []

    async def test_missing_idea_id_is_400(self, test_client: AsyncClient):
        resp = await test_client.post("/ai/generate-business-plan", json={"location": "Musanze"})
        assert resp.status_code == 400


class TestGenerateFinancialProjection:
    async def test_projection_returned_not_stored(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ['```json\n{"title": "Projections", "revenueProjections": {"year1": 500000}}\n```']
        resp = await test_client.post(
            "/ai/generate-financial-projection", json={"businessIdeaId": sample_idea.id}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["projectionId"] == sample_idea.id
        assert body["financialProjection"]["revenueProjections"] == {"year1": 500000}
        assert await _plan_rows(db) == []

    async def test_non_json_projection_wrapped(
        self, test_client: AsyncClient, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Revenue will grow steadily."]
        resp = await test_client.post(
            "/ai/generate-financial-projection", json={"businessIdeaId": sample_idea.id}
        )
        assert resp.json()["financialProjection"] == {
            "title": "Volcano Coffee Tours - Financial Projections",
            "content": "Revenue will grow steadily.",
        }

    async def test_other_users_idea_is_404(self, test_client: AsyncClient, other_idea: BusinessIdea):
        resp = await test_client.post(
            "/ai/generate-financial-projection", json={"businessIdeaId": other_idea.id}
        )
        assert resp.status_code == 404


class TestGenerateSection:
    async def test_creates_plan_when_none_exists(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["  A focused executive summary.  "]
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "executive_summary", "businessIdeaId": sample_idea.id, "content": ""},
        )
        assert resp.status_code == 200
        assert resp.json() == {"content": "A focused executive summary."}

        (plan,) = await _plan_rows(db)
        assert plan.title == "Volcano Coffee Tours - Business Plan"
        assert plan.executive_summary == "A focused executive summary."
        assert plan.market_analysis is None
        assert plan.risk_analysis is None

    async def test_update_isolated_to_one_column(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        before = {
            "executive_summary": "Summary text",
            "market_analysis": "Market text",
            "financial_projections": '{"revenue": {"year1": 1}}',
            "marketing_strategy": "Marketing text",
            "operations_plan": "Ops text",
            "risk_analysis": "Old risks",
        }
        db.add(BusinessPlan(user_id=USER_ID, business_idea_id=sample_idea.id, title="Plan", **before))
        await db.commit()

        fake_gateway.replies = ["New risk analysis."]
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "risk_analysis", "businessIdeaId": sample_idea.id, "content": "Old risks"},
        )
        assert resp.status_code == 200

        db.expire_all()
        (plan,) = await _plan_rows(db)
        assert plan.risk_analysis == "New risk analysis."
        for name in ("executive_summary", "market_analysis", "financial_projections",
                     "marketing_strategy", "operations_plan"):
            assert getattr(plan, name) == before[name]
        assert "Existing content to improve or expand upon:\nOld risks" in fake_gateway.prompts[0]

    async def test_targets_most_recent_plan(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        db.add_all([
            BusinessPlan(user_id=USER_ID, business_idea_id=sample_idea.id, title="Old"),
            BusinessPlan(user_id=USER_ID, business_idea_id=sample_idea.id, title="New"),
        ])
        await db.commit()

        fake_gateway.replies = ["Ops."]
        await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "operations_plan", "businessIdeaId": sample_idea.id},
        )
        db.expire_all()
        old, new = await _plan_rows(db)
        assert old.operations_plan is None
        assert new.operations_plan == "Ops."

    async def test_uses_idea_location_and_budget(
        self, test_client: AsyncClient, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Market."]
        await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "market_analysis", "businessIdeaId": sample_idea.id},
        )
        assert "Conduct a detailed market analysis" in fake_gateway.prompts[0]
        assert "50,000 - 200,000 RWF" in fake_gateway.prompts[0]

    async def test_unknown_section_is_400(self, test_client: AsyncClient, sample_idea: BusinessIdea):
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "company_description", "businessIdeaId": sample_idea.id},
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "section"

    async def test_other_users_idea_is_404(
        self, test_client: AsyncClient, db: AsyncSession, other_idea: BusinessIdea
    ):
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "risk_analysis", "businessIdeaId": other_idea.id},
        )
        assert resp.status_code == 404
        assert await _plan_rows(db) == []


class TestGetBusinessPlan:
    async def test_section_generation_then_read(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Executive summary from the model."]
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "executive_summary", "businessIdeaId": sample_idea.id, "content": ""},
        )
        content = resp.json()["content"]
        assert content

        (plan,) = await _plan_rows(db)
        resp = await test_client.get(f"/ai/business-plan/{plan.id}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["businessIdea"]["title"] == "Volcano Coffee Tours"
        assert body["businessPlan"]["executive_summary"] == content
        for key in ("market_analysis", "financial_projections", "marketing_strategy",
                    "operations_plan", "risk_analysis"):
            assert body["businessPlan"][key] == ""

    async def test_legacy_row_normalized(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea
    ):
        plan = BusinessPlan(
            user_id=USER_ID,
            business_idea_id=sample_idea.id,
            title="Legacy",
            executive_summary='{"executiveSummary":"A","marketAnalysis":"B","financialProjections":{"revenue":{"year1":10}}}',
        )
        db.add(plan)
        await db.commit()

        resp = await test_client.get(f"/ai/business-plan/{plan.id}")
        sections = resp.json()["businessPlan"]
        assert sections["executive_summary"] == "A"
        assert sections["market_analysis"] == "B"
        assert sections["financial_projections"] == "Revenue:\n  Year1: 10"
        assert sections["risk_analysis"] == ""

    async def test_whole_plan_financials_flattened_on_read(
        self, test_client: AsyncClient, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = [PLAN_JSON]
        plan_id = (await test_client.post(
            "/ai/generate-business-plan", json={"businessIdeaId": sample_idea.id}
        )).json()["planId"]

        sections = (await test_client.get(f"/ai/business-plan/{plan_id}")).json()["businessPlan"]
        assert sections["financial_projections"] == "Revenue:\n  Year1: 720000"
        assert sections["operations_plan"] == "Two guides."

    async def test_plan_and_idea_use_column_names(
        self, test_client: AsyncClient, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Market demand is strong."]
        await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "market_analysis", "businessIdeaId": sample_idea.id},
        )
        plan_id = (await test_client.get("/business/plans")).json()["plans"][0]["id"]

        body = (await test_client.get(f"/ai/business-plan/{plan_id}")).json()
        assert set(body) == {"businessIdea", "businessPlan"}
        assert {
            "executive_summary", "market_analysis", "financial_projections",
            "marketing_strategy", "operations_plan", "risk_analysis", "business_idea_id",
        } <= set(body["businessPlan"])
        assert "executiveSummary" not in body["businessPlan"]
        assert body["businessIdea"]["target_market"] == "International tourists"
        assert body["businessIdea"]["initial_investment"] == 150000
        assert "targetMarket" not in body["businessIdea"]

    async def test_section_generated_into_legacy_plan_keeps_other_sections(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        plan = BusinessPlan(
            user_id=USER_ID,
            business_idea_id=sample_idea.id,
            title="Legacy",
            executive_summary='{"executiveSummary":"A","marketAnalysis":"B","financialProjections":{"revenue":{"year1":10}}}',
        )
        db.add(plan)
        await db.commit()
        before = (await test_client.get(f"/ai/business-plan/{plan.id}")).json()["businessPlan"]

        fake_gateway.replies = ["New risks."]
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "risk_analysis", "businessIdeaId": sample_idea.id},
        )
        assert resp.status_code == 200

        after = (await test_client.get(f"/ai/business-plan/{plan.id}")).json()["businessPlan"]
        assert after["risk_analysis"] == "New risks."
        for name in ("executive_summary", "market_analysis", "financial_projections",
                     "marketing_strategy", "operations_plan"):
            assert after[name] == before[name]
        assert after["executive_summary"] == "A"
        assert after["market_analysis"] == "B"

    async def test_missing_plan_is_404(self, test_client: AsyncClient):
        resp = await test_client.get("/ai/business-plan/9999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    async def test_other_user_cannot_read(
        self, other_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea
    ):
        plan = BusinessPlan(
            user_id=USER_ID, business_idea_id=sample_idea.id, title="Private", executive_summary="Secret"
        )
        db.add(plan)
        await db.commit()

        resp = await other_client.get(f"/ai/business-plan/{plan.id}")
        assert resp.status_code == 404
        assert "Secret" not in resp.text


class TestChat:
    async def test_new_conversation_created(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Register with RDB first."]
        resp = await test_client.post(
            "/ai/chat",
            json={"message": "How do I register?", "location": "Musanze", "budget": "0-50000",
                  "businessSector": "Retail"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Register with RDB first."

        conversation = await db.get(ChatConversation, body["conversationId"])
        assert conversation.user_id == USER_ID
        messages = (await db.execute(
            select(ChatMessage).where(ChatMessage.conversation_id == conversation.id).order_by(ChatMessage.id)
        )).scalars().all()
        assert [(m.role, m.content) for m in messages] == [
            (ChatRole.USER, "How do I register?"),
            (ChatRole.ASSISTANT, "Register with RDB first."),
        ]
        assert "Business Sector: Retail" in fake_gateway.prompts[0]

    async def test_follow_up_includes_history(self, test_client: AsyncClient, fake_gateway: FakeGateway):
        fake_gateway.replies = ["First answer.", "Second answer."]
        first = (await test_client.post("/ai/chat", json={"message": "First question"})).json()

        resp = await test_client.post(
            "/ai/chat", json={"message": "Second question", "conversationId": first["conversationId"]}
        )
        assert resp.json()["conversationId"] == first["conversationId"]
        assert "user: First question\nassistant: First answer." in fake_gateway.prompts[1]
        assert "User Question: Second question" in fake_gateway.prompts[1]

        messages = (await test_client.get(
            f"/ai/conversations/{first['conversationId']}/messages"
        )).json()["messages"]
        assert [m["content"] for m in messages] == [
            "First question", "First answer.", "Second question", "Second answer.",
        ]

    async def test_idea_context(
        self, test_client: AsyncClient, sample_idea: BusinessIdea, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = ["Sure."]
        resp = await test_client.post(
            "/ai/chat", json={"message": "Help me price tours", "businessIdeaId": sample_idea.id}
        )
        assert resp.status_code == 200
        assert "Business Context:" in fake_gateway.prompts[0]
        assert "Volcano Coffee Tours" in fake_gateway.prompts[0]

    async def test_unknown_conversation_is_404(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        resp = await test_client.post("/ai/chat", json={"message": "Hi", "conversationId": 4242})
        assert resp.status_code == 404
        assert fake_gateway.prompts == []
        assert (await db.execute(select(ChatMessage))).scalars().all() == []

    async def test_model_failure_writes_nothing(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        fake_gateway.replies = [ModelUnavailable("provider 503: upstream overloaded")]
        resp = await test_client.post("/ai/chat", json={"message": "Hello?"})
        assert resp.status_code == 500
        assert (await db.execute(select(ChatConversation))).scalars().all() == []

    async def test_empty_message_is_400(self, test_client: AsyncClient):
        resp = await test_client.post("/ai/chat", json={"message": "   "})
        assert resp.status_code == 400


class TestConversations:
    async def test_list_only_own_conversations(
        self, test_client: AsyncClient, db: AsyncSession, fake_gateway: FakeGateway
    ):
        db.add(ChatConversation(user_id=OTHER_USER_ID, title="Not mine"))
        await db.commit()
        fake_gateway.replies = ["Answer."]
        await test_client.post("/ai/chat", json={"message": "Question"})

        resp = await test_client.get("/ai/conversations", params={"limit": 10})
        assert resp.status_code == 200
        body = resp.json()
        assert [c["title"] for c in body["conversations"]] == ["New Conversation"]
        assert body["pagination"] == {"limit": 10, "offset": 0}

    async def test_other_users_messages_are_404(
        self, other_client: AsyncClient, db: AsyncSession
    ):
        conversation = ChatConversation(user_id=USER_ID, title="Mine")
        db.add(conversation)
        await db.commit()

        resp = await other_client.get(f"/ai/conversations/{conversation.id}/messages")
        assert resp.status_code == 404


class TestModelFailures:
    """Provider failures surface as a generic 500 with no internal detail."""

    @pytest.mark.parametrize(
        "error",
        [ModelUnavailable("401 invalid api key AIza-secret"), ModelEmptyResponse("empty completion")],
    )
    async def test_generic_500(
        self, test_client: AsyncClient, db: AsyncSession, sample_idea: BusinessIdea,
        fake_gateway: FakeGateway, error: Exception,
    ):
        fake_gateway.replies = [error]
        resp = await test_client.post(
            "/ai/generate-business-plan-section",
            json={"section": "risk_analysis", "businessIdeaId": sample_idea.id},
        )
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "generation_failed"
        assert "AIza" not in resp.text
        assert "empty completion" not in resp.text
        assert await _plan_rows(db) == []
