"""Prompt templates for every generation intent.

Pure string assembly: location, budget, sector and currency are always passed in
by the caller, never read from settings or request state here.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from innostart.models.enums import PlanSection

DEFAULT_BUDGET_TAG = "50000-200000"

BUDGET_RANGES: dict[str, tuple[str, str]] = {
    "0-50000": ("0 - 50,000", "very low budget"),
    "50000-200000": ("50,000 - 200,000", "low budget"),
    "200000-500000": ("200,000 - 500,000", "medium budget"),
    "500000-1000000": ("500,000 - 1,000,000", "high budget"),
    "1000000+": ("1,000,000+", "very high budget"),
}

SECTION_FOCUS: dict[PlanSection, str] = {
    PlanSection.EXECUTIVE_SUMMARY: "Create a comprehensive executive summary for a business plan",
    PlanSection.MARKET_ANALYSIS: "Conduct a detailed market analysis for a business",
    PlanSection.FINANCIAL_PROJECTIONS: "Create detailed financial projections for a business",
    PlanSection.MARKETING_STRATEGY: "Develop a comprehensive marketing strategy for a business",
    PlanSection.OPERATIONS_PLAN: "Create a detailed operations plan for a business",
    PlanSection.RISK_ANALYSIS: "Conduct a thorough risk analysis for a business",
}


def describe_budget(tag: str | None, currency: str, fallback: bool = True) -> str:
    """Render a budget tag as prose, e.g. ``50,000 - 200,000 RWF (low budget)``.

    Unknown tags render the default bucket, or an empty string when
    ``fallback`` is False.
    """
    entry = BUDGET_RANGES.get(tag or "")
    if entry is None:
        if not fallback:
            return ""
        entry = BUDGET_RANGES[DEFAULT_BUDGET_TAG]
    amount, label = entry
    return f"{amount} {currency} ({label})"


def _idea_details(idea: Mapping[str, Any], currency: str) -> str:
    title = idea.get("title")
    if not title:
        raise ValueError("business idea title is required to build a prompt")
    return "\n".join(
        [
            f"- Title: {title}",
            f"- Description: {idea.get('description') or ''}",
            f"- Industry: {idea.get('industry') or ''}",
            f"- Target Market: {idea.get('target_market') or ''}",
            f"- Initial Investment: {idea.get('initial_investment') or 0} {currency}",
            f"- Expected Revenue: {idea.get('expected_revenue') or 0} {currency}",
            f"- Success Probability: {idea.get('success_probability') or 0}%",
        ]
    )


def build_ideas_prompt(
    user_input: str,
    location: str,
    budget: str,
    currency: str,
    country: str,
) -> str:
    budget_description = describe_budget(budget, currency)
    return f"""You are an expert business consultant specializing in {country} entrepreneurship, particularly in the {location} region.
Generate 5 innovative business ideas based on the following criteria:

User Input: {user_input}
Location: {location}
Budget Range: {budget_description}

Consider:
- Local market opportunities in {location} (tourism, agriculture, technology, services)
- {country}'s economic development priorities
- Budget constraints: {budget_description} - ALL investment amounts MUST be within this range
- Realistic revenue expectations for small businesses in {location}
- Scalability potential within the budget
- Local resources, talent availability and cultural factors in {location}
- Typical pricing and income levels in {location}

Respond ONLY with a JSON array of 5 objects, no markdown, with these fields:
[
  {{
    "title": "<business title>",
    "description": "<2-3 sentences>",
    "industry": "<industry>",
    "targetMarket": "<who buys>",
    "initialInvestment": <number in {currency}, within {budget_description}>,
    "expectedRevenue": <number in {currency}, realistic monthly revenue>,
    "successFactors": ["<factor>", "<factor>"],
    "challenges": ["<challenge>", "<challenge>"],
    "successProbability": <integer 1-100>
  }}
]

IMPORTANT:
- Initial investment MUST be within the specified budget range ({budget_description})
- Use {currency} for all financial amounts, as plain numbers without thousands separators
- Expected revenue should be realistic for small businesses in {location}
"""


def build_business_plan_prompt(
    idea: Mapping[str, Any],
    location: str,
    budget: str,
    currency: str,
    country: str,
) -> str:
    budget_description = describe_budget(budget, currency)
    return f"""You are an expert business consultant creating a comprehensive business plan for an entrepreneur in {location}, {country}.

Business Idea Details:
{_idea_details(idea, currency)}

Location: {location}
Budget Range: {budget_description}

Cover: executive summary, company description, market analysis for {location},
organization and management, products and services, marketing and sales,
3-year financial projections with monthly cash flow for the first year and a
break-even analysis, operations plan, risk analysis with mitigation, and an
implementation timeline.

IMPORTANT: Respond ONLY with a valid JSON object with the following structure:
{{
  "title": "Business Plan Title",
  "executiveSummary": "...",
  "companyDescription": "...",
  "marketAnalysis": "...",
  "organizationManagement": "...",
  "serviceProductLine": "...",
  "marketingSales": "...",
  "financialProjections": {{"revenue": {{...}}, "expenses": {{...}}, "cashFlow": {{...}}, "ratios": {{...}}}},
  "operationsPlan": "...",
  "riskAnalysis": "...",
  "implementationTimeline": "..."
}}

Keep every monetary figure within the {budget_description} budget range and express it in {currency}.
Focus on practical, actionable content specific to {location}.
"""


def build_financial_projection_prompt(
    idea: Mapping[str, Any],
    location: str,
    budget: str,
    currency: str,
    country: str,
) -> str:
    budget_description = describe_budget(budget, currency)
    return f"""You are a financial analyst creating detailed financial projections for a business in {location}, {country}.

Business Details:
{_idea_details(idea, currency)}

Location: {location}
Budget Range: {budget_description}

Include monthly revenue for the first 12 months and annual revenue for years 1-3,
fixed/variable/startup expenses, monthly cash flow and working capital, profit and
loss, balance sheet, key ratios (gross margin, net margin, ROI, break-even),
funding requirements and best/worst/most-likely scenarios, with seasonal
variation for {location}.

IMPORTANT: Respond ONLY with a valid JSON object with the following structure:
{{
  "title": "Financial Projections Title",
  "revenueProjections": {{...}},
  "expenseProjections": {{...}},
  "cashFlowAnalysis": {{...}},
  "profitLossProjections": {{...}},
  "balanceSheetProjections": {{...}},
  "keyFinancialRatios": {{...}},
  "fundingRequirements": {{...}},
  "sensitivityAnalysis": {{...}}
}}

All monetary figures must be in {currency} and consistent with the {budget_description} budget range.
"""


def build_section_prompt(
    idea: Mapping[str, Any],
    section: PlanSection,
    location: str,
    budget: str,
    currency: str,
    country: str,
    existing_content: str = "",
) -> str:
    budget_description = describe_budget(budget, currency)
    focus = SECTION_FOCUS[section]
    improve = (
        f"\nExisting content to improve or expand upon:\n{existing_content}\n"
        if existing_content and existing_content.strip()
        else ""
    )
    return f"""You are an expert business consultant writing one section of a business plan for a business in {location}, {country}.

Business Details:
{_idea_details(idea, currency)}

Location: {location}
Budget Range: {budget_description}
Section: {section.value}

{focus} in {location}, {country}.
{improve}
Requirements:
- Focus specifically on {location} market conditions
- Use {currency} for every monetary figure and keep figures within {budget_description}
- Provide practical, actionable, professional content
- If improving existing content, enhance and expand it rather than replacing it entirely

Respond with well-structured narrative text for this section only, not JSON.
"""


def build_chat_prompt(
    message: str,
    history: Sequence[Mapping[str, str]],
    location: str,
    budget: str,
    business_sector: str,
    currency: str,
    country: str,
    business_context: Mapping[str, Any] | None = None,
) -> str:
    budget_description = describe_budget(budget, currency, fallback=False)
    context = (
        f"Business Context: {json.dumps(dict(business_context), indent=2, default=str)}\n\n"
        if business_context
        else ""
    )
    transcript = (
        "Previous conversation:\n"
        + "\n".join(f"{turn['role']}: {turn['content']}" for turn in history)
        + "\n\n"
        if history
        else ""
    )
    return f"""You are InnoStart AI, a helpful business consultant specializing in {country} entrepreneurship, particularly in {location}.

User Context:
- Location: {location}
- Budget Range: {budget_description}
- Business Sector: {business_sector}

{context}{transcript}User Question: {message}

Give practical advice on planning, market validation for the {business_sector} sector, financial
planning within {budget_description or 'the user budget'} (amounts in {currency}), marketing, operations,
and legal requirements in {country}, all specific to {location}.

Keep responses concise (2-3 paragraphs max) and actionable. If you don't know something specific
about {country}, say so and provide general guidance. Respond in plain text, in a friendly, encouraging tone.
"""
