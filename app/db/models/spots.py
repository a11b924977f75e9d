from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Spot(Base):
    __tablename__ = "spots"
    __table_args__ = (
        CheckConstraint(
            "verification_status IN ('PENDING','AUTO_APPROVED','APPROVED','REJECTED','FLAGGED')",
            name="ck_spots_verification_status",
        ),
        CheckConstraint(
            "verification_score >= 0 AND verification_score <= 100",
            name="ck_spots_verification_score_range",
        ),
        CheckConstraint("xp_reward >= 0", name="ck_spots_xp_reward_non_negative"),
        CheckConstraint(
            "NOT (xp_released AND xp_denied)",
            name="ck_spots_xp_released_xor_denied",
        ),
        Index("idx_spots_creator_created", "creator_user_id", "created_at"),
        Index("idx_spots_lat_lng", "latitude", "longitude"),
        Index("idx_spots_photo_hash", "photo_hash"),
        Index("idx_spots_status", "verification_status"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    creator_user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=False,
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    gps_accuracy_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_mock_location: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    has_photo: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    photo_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    exif_taken_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exif_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    exif_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    category: Mapped[str] = mapped_column(String(32), nullable=False)

    verification_status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'PENDING'"),
    )
    verification_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    verification_reasons: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    verification_flags: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    detailed_scores: Mapped[dict[str, int]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    xp_released: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    xp_released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    xp_denied: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    xp_denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    report_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_reported_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    flag_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    flagged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    needs_correction: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    correction_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
