"""Business idea and business plan models."""

from decimal import Decimal

from sqlalchemy import Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from innostart.models.base import BaseModel
from innostart.models.enums import BusinessPlanStatus, IdeaStatus, enum_values


class BusinessIdea(BaseModel):
    __tablename__ = "business_ideas"
    __table_args__ = (
        Index("ix_business_ideas_user_id", "user_id"),
        Index("ix_business_ideas_industry", "industry"),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    industry: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    target_market: Mapped[str] = mapped_column(Text, nullable=False, default="")
    initial_investment: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    expected_revenue: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    success_probability: Mapped[int] = mapped_column(nullable=False, default=50)
    status: Mapped[IdeaStatus] = mapped_column(
        Enum(IdeaStatus, name="idea_status", values_callable=enum_values),
        nullable=False,
        default=IdeaStatus.DRAFT,
    )
    location: Mapped[str | None] = mapped_column(String(255))
    budget_range: Mapped[str | None] = mapped_column(String(50))

    def __repr__(self) -> str:
        return f"<BusinessIdea(id={self.id}, title={self.title!r})>"


class BusinessPlan(BaseModel):
    """A six-section plan for one idea.

    Sections are stored as text. ``financial_projections`` holds serialized JSON
    when the whole-plan path produced a structured value. Rows written before the
    per-column layout keep the entire plan as JSON inside ``executive_summary``.
    """

    __tablename__ = "business_plans"
    __table_args__ = (
        Index("ix_business_plans_user_id", "user_id"),
        Index("ix_business_plans_business_idea_id", "business_idea_id"),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    business_idea_id: Mapped[int] = mapped_column(
        ForeignKey("business_ideas.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    executive_summary: Mapped[str | None] = mapped_column(Text)
    market_analysis: Mapped[str | None] = mapped_column(Text)
    financial_projections: Mapped[str | None] = mapped_column(Text)
    marketing_strategy: Mapped[str | None] = mapped_column(Text)
    operations_plan: Mapped[str | None] = mapped_column(Text)
    risk_analysis: Mapped[str | None] = mapped_column(Text)
    status: Mapped[BusinessPlanStatus] = mapped_column(
        Enum(BusinessPlanStatus, name="business_plan_status", values_callable=enum_values),
        nullable=False,
        default=BusinessPlanStatus.DRAFT,
    )

    def __repr__(self) -> str:
        return f"<BusinessPlan(id={self.id}, title={self.title!r}, status={self.status.value})>"
