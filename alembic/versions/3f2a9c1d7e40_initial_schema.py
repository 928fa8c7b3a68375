"""initial_schema

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "3f2a9c1d7e40"
down_revision: str | None = None
branch_labels = None
depends_on = None

_idea_status = sa.Enum(
    "draft", "in_progress", "completed", "paused", "archived", "active",
    name="idea_status",
)
_plan_status = sa.Enum("draft", name="business_plan_status")
_chat_role = sa.Enum("user", "assistant", name="chat_role")


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "business_ideas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("industry", sa.String(100), nullable=False),
        sa.Column("target_market", sa.Text(), nullable=False),
        sa.Column("initial_investment", sa.Numeric(15, 2), nullable=False),
        sa.Column("expected_revenue", sa.Numeric(15, 2), nullable=False),
        sa.Column("success_probability", sa.Integer(), nullable=False),
        sa.Column("status", _idea_status, nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("budget_range", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_business_ideas_user_id", "business_ideas", ["user_id"])
    op.create_index("ix_business_ideas_industry", "business_ideas", ["industry"])

    op.create_table(
        "business_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "business_idea_id",
            sa.Integer(),
            sa.ForeignKey("business_ideas.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("executive_summary", sa.Text(), nullable=True),
        sa.Column("market_analysis", sa.Text(), nullable=True),
        sa.Column("financial_projections", sa.Text(), nullable=True),
        sa.Column("marketing_strategy", sa.Text(), nullable=True),
        sa.Column("operations_plan", sa.Text(), nullable=True),
        sa.Column("risk_analysis", sa.Text(), nullable=True),
        sa.Column("status", _plan_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_business_plans_user_id", "business_plans", ["user_id"])
    op.create_index("ix_business_plans_business_idea_id", "business_plans", ["business_idea_id"])

    op.create_table(
        "chat_conversations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "business_idea_id",
            sa.Integer(),
            sa.ForeignKey("business_ideas.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_chat_conversations_user_id", "chat_conversations", ["user_id"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("chat_conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _chat_role, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_chat_messages_conversation_id", "chat_messages", ["conversation_id"])


def downgrade() -> None:
    op.drop_table("chat_messages")
    op.drop_table("chat_conversations")
    op.drop_table("business_plans")
    op.drop_table("business_ideas")
    op.drop_table("users")
    _chat_role.drop(op.get_bind(), checkfirst=True)
    _plan_status.drop(op.get_bind(), checkfirst=True)
    _idea_status.drop(op.get_bind(), checkfirst=True)
