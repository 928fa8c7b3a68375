"""HTTP tests for business idea & plan CRUD and the dashboard."""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import OTHER_USER_ID, USER_ID
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation
from innostart.models.enums import IdeaStatus

pytestmark = pytest.mark.anyio


@pytest.fixture
async def ideas(db: AsyncSession, seed_users) -> list[BusinessIdea]:
    rows = [
        BusinessIdea(user_id=USER_ID, title="Coffee Tours", industry="Tourism",
                     initial_investment=Decimal("150000"), status=IdeaStatus.DRAFT),
        BusinessIdea(user_id=USER_ID, title="Bike Rentals", industry="Tourism",
                     status=IdeaStatus.ACTIVE),
        BusinessIdea(user_id=USER_ID, title="Honey Shop", industry="Agriculture",
                     status=IdeaStatus.DRAFT),
        BusinessIdea(user_id=OTHER_USER_ID, title="Someone Else", industry="Retail",
                     status=IdeaStatus.DRAFT),
    ]
    db.add_all(rows)
    await db.commit()
    for row in rows:
        await db.refresh(row)
    return rows


@pytest.fixture
async def plan(db: AsyncSession, ideas: list[BusinessIdea]) -> BusinessPlan:
    row = BusinessPlan(
        user_id=USER_ID,
        business_idea_id=ideas[0].id,
        title="Coffee Tours - Business Plan",
        executive_summary="Summary",
        market_analysis="Market",
        financial_projections='{"revenue": {"year1": 100}}',
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


class TestIdeas:
    async def test_list_own_ideas(self, test_client: AsyncClient, ideas):
        resp = await test_client.get("/business/ideas")
        assert resp.status_code == 200
        titles = {i["title"] for i in resp.json()["ideas"]}
        assert titles == {"Coffee Tours", "Bike Rentals", "Honey Shop"}

    async def test_filters(self, test_client: AsyncClient, ideas):
        resp = await test_client.get("/business/ideas", params={"status": "active"})
        assert [i["title"] for i in resp.json()["ideas"]] == ["Bike Rentals"]

        resp = await test_client.get("/business/ideas", params={"industry": "Agriculture"})
        assert [i["title"] for i in resp.json()["ideas"]] == ["Honey Shop"]

    async def test_pagination(self, test_client: AsyncClient, ideas):
        resp = await test_client.get("/business/ideas", params={"limit": 2, "offset": 0})
        body = resp.json()
        assert len(body["ideas"]) == 2
        assert body["pagination"] == {"limit": 2, "offset": 0}

    async def test_get_idea(self, test_client: AsyncClient, ideas):
        resp = await test_client.get(f"/business/ideas/{ideas[0].id}")
        assert resp.status_code == 200
        assert resp.json()["initial_investment"] == 150000

    async def test_get_other_users_idea_is_404(self, test_client: AsyncClient, ideas):
        resp = await test_client.get(f"/business/ideas/{ideas[3].id}")
        assert resp.status_code == 404
        assert "Someone Else" not in resp.text

    async def test_update_idea(self, test_client: AsyncClient, ideas):
        resp = await test_client.put(
            f"/business/ideas/{ideas[0].id}",
            json={"status": "in_progress", "successProbability": 80},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "in_progress"
        assert body["success_probability"] == 80
        assert body["title"] == "Coffee Tours"

    async def test_update_rejects_bad_probability(self, test_client: AsyncClient, ideas):
        resp = await test_client.put(f"/business/ideas/{ideas[0].id}", json={"successProbability": 150})
        assert resp.status_code == 400

    async def test_delete_cascades_to_plans(
        self, test_client: AsyncClient, db: AsyncSession, ideas, plan: BusinessPlan
    ):
        resp = await test_client.delete(f"/business/ideas/{ideas[0].id}")
        assert resp.status_code == 204

        db.expunge_all()
        assert (await db.execute(select(BusinessPlan))).scalars().all() == []
        assert await db.get(BusinessIdea, ideas[1].id) is not None

    async def test_delete_other_users_idea_is_404(self, test_client: AsyncClient, db: AsyncSession, ideas):
        other_id = ideas[3].id
        resp = await test_client.delete(f"/business/ideas/{other_id}")
        assert resp.status_code == 404
        db.expunge_all()
        assert await db.get(BusinessIdea, other_id) is not None


class TestPlans:
    async def test_list_plans(self, test_client: AsyncClient, plan: BusinessPlan):
        resp = await test_client.get("/business/plans")
        assert resp.status_code == 200
        (row,) = resp.json()["plans"]
        assert row["idea_title"] == "Coffee Tours"
        assert row["business_idea_id"] == plan.business_idea_id

    async def test_get_plan_normalized(self, test_client: AsyncClient, plan: BusinessPlan):
        resp = await test_client.get(f"/business/plans/{plan.id}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["executive_summary"] == "Summary"
        assert body["financial_projections"] == "Revenue:\n  Year1: 100"
        assert body["risk_analysis"] == ""

    async def test_other_user_cannot_read_plan(self, other_client: AsyncClient, plan: BusinessPlan):
        resp = await other_client.get(f"/business/plans/{plan.id}")
        assert resp.status_code == 404

    async def test_edit_one_section(self, test_client: AsyncClient, db: AsyncSession, plan: BusinessPlan):
        resp = await test_client.put(
            f"/business/plans/{plan.id}/sections/market_analysis",
            json={"content": "Edited market analysis"},
        )
        assert resp.status_code == 200
        assert resp.json()["content"] == "Edited market analysis"

        stored = await db.get(BusinessPlan, plan.id)
        assert stored.market_analysis == "Edited market analysis"
        assert stored.executive_summary == "Summary"
        assert stored.financial_projections == '{"revenue": {"year1": 100}}'

    async def test_edit_section_of_legacy_plan_keeps_other_sections(
        self, test_client: AsyncClient, db: AsyncSession, ideas
    ):
        legacy = BusinessPlan(
            user_id=USER_ID,
            business_idea_id=ideas[1].id,
            title="Legacy",
            executive_summary='{"executiveSummary":"A","marketAnalysis":"B"}',
        )
        db.add(legacy)
        await db.commit()

        resp = await test_client.put(
            f"/business/plans/{legacy.id}/sections/risk_analysis",
            json={"content": "Edited risks"},
        )
        assert resp.status_code == 200

        body = (await test_client.get(f"/business/plans/{legacy.id}")).json()
        assert body["executive_summary"] == "A"
        assert body["market_analysis"] == "B"
        assert body["risk_analysis"] == "Edited risks"

    async def test_editing_legacy_summary_keeps_other_sections(
        self, test_client: AsyncClient, db: AsyncSession, ideas
    ):
        legacy = BusinessPlan(
            user_id=USER_ID,
            business_idea_id=ideas[1].id,
            title="Legacy",
            executive_summary='{"executiveSummary":"A","marketAnalysis":"B"}',
        )
        db.add(legacy)
        await db.commit()

        await test_client.put(
            f"/business/plans/{legacy.id}/sections/executive_summary",
            json={"content": "Rewritten summary"},
        )

        body = (await test_client.get(f"/business/plans/{legacy.id}")).json()
        assert body["executive_summary"] == "Rewritten summary"
        assert body["market_analysis"] == "B"

    async def test_unknown_section_is_400(self, test_client: AsyncClient, plan: BusinessPlan):
        resp = await test_client.put(
            f"/business/plans/{plan.id}/sections/appendix", json={"content": "x"}
        )
        assert resp.status_code == 400


class TestDashboard:
    async def test_counts(self, test_client: AsyncClient, db: AsyncSession, ideas, plan: BusinessPlan):
        db.add(ChatConversation(user_id=USER_ID, title="Chat"))
        await db.commit()

        resp = await test_client.get("/business/dashboard")
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalIdeas"] == 3
        assert body["totalPlans"] == 1
        assert body["totalConversations"] == 1
        assert {s["status"]: s["count"] for s in body["ideasByStatus"]} == {"draft": 2, "active": 1}
        assert body["topIndustries"][0] == {"industry": "Tourism", "count": 2}
        assert body["ideasLast7Days"] == 3
        assert len(body["recentIdeas"]) == 3
