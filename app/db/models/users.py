from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Float, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("xp_points >= 0", name="ck_users_xp_points_non_negative"),
        CheckConstraint("xp_pending >= 0", name="ck_users_xp_pending_non_negative"),
        CheckConstraint(
            "trust_score >= 0 AND trust_score <= 1",
            name="ck_users_trust_score_range",
        ),
        Index("idx_users_created_at", "created_at"),
        Index("idx_users_shadow_banned", "is_shadow_banned"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    xp_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    xp_pending: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    trust_score: Mapped[float] = mapped_column(Float, nullable=False, server_default=text("1.0"))
    spot_submissions: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    spot_approved_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    spot_rejected_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    is_shadow_banned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    spots_discovered: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    challenges_completed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
