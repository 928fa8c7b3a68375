"""Enumerations shared by models and schemas."""

import enum


class IdeaStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PAUSED = "paused"
    ARCHIVED = "archived"
    ACTIVE = "active"


class BusinessPlanStatus(str, enum.Enum):
    DRAFT = "draft"


class ChatRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class PlanSection(str, enum.Enum):
    """The six narrative sections of a business plan, named after their columns."""

    EXECUTIVE_SUMMARY = "executive_summary"
    MARKET_ANALYSIS = "market_analysis"
    FINANCIAL_PROJECTIONS = "financial_projections"
    MARKETING_STRATEGY = "marketing_strategy"
    OPERATIONS_PLAN = "operations_plan"
    RISK_ANALYSIS = "risk_analysis"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum members by value rather than by name."""
    return [member.value for member in enum_cls]
