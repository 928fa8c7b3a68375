"""SQLAlchemy models package; import all models so Base.metadata is populated."""

from innostart.models.base import BaseModel, ModelMixin, TimestampedModel
from innostart.models.business import BusinessIdea, BusinessPlan
from innostart.models.chat import ChatConversation, ChatMessage
from innostart.models.core import User
from innostart.models.enums import BusinessPlanStatus, ChatRole, IdeaStatus, PlanSection
from innostart.models.knowledge import KnowledgeDocument

__all__ = [
    "BaseModel",
    "BusinessIdea",
    "BusinessPlan",
    "BusinessPlanStatus",
    "ChatConversation",
    "ChatMessage",
    "ChatRole",
    "IdeaStatus",
    "KnowledgeDocument",
    "ModelMixin",
    "PlanSection",
    "TimestampedModel",
    "User",
]
