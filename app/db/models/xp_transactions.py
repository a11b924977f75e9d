from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class XpTransaction(Base):
    """Append-only XP ledger row. Rows are never updated or deleted."""

    __tablename__ = "xp_transactions"
    __table_args__ = (
        CheckConstraint(
            "tx_type IN ('AWARD','DENIAL','ADMIN','ADJUSTMENT')",
            name="ck_xp_transactions_tx_type",
        ),
        CheckConstraint("new_xp >= 0", name="ck_xp_transactions_new_xp_non_negative"),
        Index("idx_xp_tx_user_created", "user_id", "created_at"),
        Index("idx_xp_tx_user_action_resource", "user_id", "action", "resource_id"),
        Index("idx_xp_tx_type", "tx_type"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    action: Mapped[str] = mapped_column(String(48), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    previous_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    new_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_level: Mapped[int] = mapped_column(Integer, nullable=False)
    new_level: Mapped[int] = mapped_column(Integer, nullable=False)
    leveled_up: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    tx_type: Mapped[str] = mapped_column(String(16), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(160), unique=True, nullable=True)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
