from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class BadgeDefinition(Base):
    __tablename__ = "badge_definitions"
    __table_args__ = (
        CheckConstraint(
            "unlock_type IN ('XP','LEVEL','MILESTONE')",
            name="ck_badge_definitions_unlock_type",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    unlock_type: Mapped[str] = mapped_column(String(16), nullable=False)
    required_xp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    required_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    milestone_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    required_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    badge_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("badge_definitions.id"),
        nullable=False,
    )
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
