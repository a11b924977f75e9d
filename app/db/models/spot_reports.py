from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class SpotReport(Base):
    __tablename__ = "spot_reports"
    __table_args__ = (
        CheckConstraint(
            "reason IN ('FAKE','WRONG_LOCATION','SPAM','OFFENSIVE','DANGEROUS','DUPLICATE')",
            name="ck_spot_reports_reason",
        ),
        CheckConstraint("status IN ('PENDING','REVIEWED')", name="ck_spot_reports_status"),
        UniqueConstraint("spot_id", "reported_by_user_id", name="uq_spot_reports_spot_reporter"),
        Index("idx_spot_reports_spot_created", "spot_id", "created_at"),
        Index("idx_spot_reports_reporter_created", "reported_by_user_id", "created_at"),
        Index("idx_spot_reports_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    spot_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("spots.id"),
        nullable=False,
    )
    reported_by_user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'PENDING'"))
    action: Mapped[str | None] = mapped_column(String(32), nullable=True)
    review_notes: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    reviewed_by_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
