"""Core models: User."""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from innostart.models.base import BaseModel


class User(BaseModel):
    """Account row owned by the auth service; this API only reads it."""

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    location: Mapped[str | None] = mapped_column(String(255))
