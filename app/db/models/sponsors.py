from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Sponsor(Base):
    __tablename__ = "sponsors"
    __table_args__ = (
        CheckConstraint("qr_version >= 1", name="ck_sponsors_qr_version_positive"),
        CheckConstraint(
            "qr_expiry_minutes >= 1 AND qr_expiry_minutes <= 60",
            name="ck_sponsors_qr_expiry_range",
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    owner_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    qr_secret: Mapped[str | None] = mapped_column(String(128), nullable=True)
    qr_version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    qr_expiry_minutes: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("5"))
    qr_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_qr_nonce: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
