"""spot_engine_schema

Revision ID: 5c1e0a7d2b34
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e0a7d2b34"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("xp_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("xp_pending", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("trust_score", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("spot_submissions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("spot_approved_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("spot_rejected_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_shadow_banned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("spots_discovered", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("challenges_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("xp_points >= 0", name="ck_users_xp_points_non_negative"),
        sa.CheckConstraint("xp_pending >= 0", name="ck_users_xp_pending_non_negative"),
        sa.CheckConstraint("trust_score >= 0 AND trust_score <= 1", name="ck_users_trust_score_range"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])
    op.create_index("idx_users_shadow_banned", "users", ["is_shadow_banned"])

    op.create_table(
        "spots",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("creator_user_id", sa.BigInteger(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("gps_accuracy_m", sa.Float(), nullable=True),
        sa.Column("is_mock_location", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_photo", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("photo_hash", sa.String(128), nullable=True),
        sa.Column("exif_taken_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exif_latitude", sa.Float(), nullable=True),
        sa.Column("exif_longitude", sa.Float(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("verification_status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("verification_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "verification_reasons",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "verification_flags",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "detailed_scores",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("xp_reward", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("xp_released", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("xp_released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("xp_denied", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("xp_denied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_reported_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("flag_reason", sa.Text(), nullable=True),
        sa.Column("flagged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("needs_correction", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("correction_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "verification_status IN ('PENDING','AUTO_APPROVED','APPROVED','REJECTED','FLAGGED')",
            name="ck_spots_verification_status",
        ),
        sa.CheckConstraint(
            "verification_score >= 0 AND verification_score <= 100",
            name="ck_spots_verification_score_range",
        ),
        sa.CheckConstraint("xp_reward >= 0", name="ck_spots_xp_reward_non_negative"),
        sa.CheckConstraint("NOT (xp_released AND xp_denied)", name="ck_spots_xp_released_xor_denied"),
        sa.ForeignKeyConstraint(["creator_user_id"], ["users.id"]),
    )
    op.create_index("idx_spots_creator_created", "spots", ["creator_user_id", "created_at"])
    op.create_index("idx_spots_lat_lng", "spots", ["latitude", "longitude"])
    op.create_index("idx_spots_photo_hash", "spots", ["photo_hash"])
    op.create_index("idx_spots_status", "spots", ["verification_status"])

    op.create_table(
        "verification_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("spot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("reasons", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("flags", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("detailed_scores", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["spot_id"], ["spots.id"]),
    )
    op.create_index("idx_verification_logs_spot", "verification_logs", ["spot_id"])

    op.create_table(
        "xp_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("action", sa.String(48), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("previous_xp", sa.Integer(), nullable=False),
        sa.Column("new_xp", sa.Integer(), nullable=False),
        sa.Column("previous_level", sa.Integer(), nullable=False),
        sa.Column("new_level", sa.Integer(), nullable=False),
        sa.Column("leveled_up", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tx_type", sa.String(16), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.BigInteger(), nullable=True),
        sa.Column("idempotency_key", sa.String(160), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "tx_type IN ('AWARD','DENIAL','ADMIN','ADJUSTMENT')",
            name="ck_xp_transactions_tx_type",
        ),
        sa.CheckConstraint("new_xp >= 0", name="ck_xp_transactions_new_xp_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_xp_transactions_idempotency_key"),
    )
    op.create_index("idx_xp_tx_user_created", "xp_transactions", ["user_id", "created_at"])
    op.create_index(
        "idx_xp_tx_user_action_resource",
        "xp_transactions",
        ["user_id", "action", "resource_id"],
    )
    op.create_index("idx_xp_tx_type", "xp_transactions", ["tx_type"])

    op.create_table(
        "xp_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("action", sa.String(48), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index(
        "idx_xp_history_user_action_awarded",
        "xp_history",
        ["user_id", "action", "awarded_at"],
    )
    op.create_index(
        "idx_xp_history_user_action_entity",
        "xp_history",
        ["user_id", "action", "entity_id"],
    )

    op.create_table(
        "badge_definitions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("unlock_type", sa.String(16), nullable=False),
        sa.Column("required_xp", sa.Integer(), nullable=True),
        sa.Column("required_level", sa.Integer(), nullable=True),
        sa.Column("milestone_type", sa.String(32), nullable=True),
        sa.Column("required_count", sa.Integer(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.CheckConstraint(
            "unlock_type IN ('XP','LEVEL','MILESTONE')",
            name="ck_badge_definitions_unlock_type",
        ),
    )

    op.create_table(
        "user_badges",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("badge_id", sa.String(64), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["badge_id"], ["badge_definitions.id"]),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    op.create_table(
        "sponsors",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_user_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("qr_secret", sa.String(128), nullable=True),
        sa.Column("qr_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("qr_expiry_minutes", sa.Integer(), nullable=False, server_default=sa.text("5")),
        sa.Column("qr_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_qr_nonce", sa.String(64), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("qr_version >= 1", name="ck_sponsors_qr_version_positive"),
        sa.CheckConstraint(
            "qr_expiry_minutes >= 1 AND qr_expiry_minutes <= 60",
            name="ck_sponsors_qr_expiry_range",
        ),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"]),
    )

    op.create_table(
        "rewards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("sponsor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("xp_required", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_redemptions", sa.Integer(), nullable=True),
        sa.Column("current_redemptions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("xp_required >= 0", name="ck_rewards_xp_required_non_negative"),
        sa.CheckConstraint(
            "current_redemptions >= 0",
            name="ck_rewards_current_redemptions_non_negative",
        ),
        sa.ForeignKeyConstraint(["sponsor_id"], ["sponsors.id"]),
    )
    op.create_index("idx_rewards_sponsor", "rewards", ["sponsor_id"])

    op.create_table(
        "redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("reward_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sponsor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("xp_used", sa.Integer(), nullable=False),
        sa.Column("redemption_code", sa.Text(), nullable=False),
        sa.Column("scanned_code", sa.Text(), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by_user_id", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reward_id"], ["rewards.id"]),
        sa.ForeignKeyConstraint(["sponsor_id"], ["sponsors.id"]),
        sa.UniqueConstraint("redemption_code", name="uq_redemptions_redemption_code"),
    )
    op.create_index(
        "uq_redemptions_user_reward_live",
        "redemptions",
        ["user_id", "reward_id"],
        unique=True,
        postgresql_where=sa.text("used = false"),
    )
    op.create_index("idx_redemptions_sponsor", "redemptions", ["sponsor_id"])

    op.create_table(
        "spot_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("spot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("reported_by_user_id", sa.BigInteger(), nullable=False),
        sa.Column("reason", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("action", sa.String(32), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("reviewed_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "reason IN ('FAKE','WRONG_LOCATION','SPAM','OFFENSIVE','DANGEROUS','DUPLICATE')",
            name="ck_spot_reports_reason",
        ),
        sa.CheckConstraint("status IN ('PENDING','REVIEWED')", name="ck_spot_reports_status"),
        sa.ForeignKeyConstraint(["spot_id"], ["spots.id"]),
        sa.ForeignKeyConstraint(["reported_by_user_id"], ["users.id"]),
        sa.UniqueConstraint("spot_id", "reported_by_user_id", name="uq_spot_reports_spot_reporter"),
    )
    op.create_index("idx_spot_reports_spot_created", "spot_reports", ["spot_id", "created_at"])
    op.create_index(
        "idx_spot_reports_reporter_created",
        "spot_reports",
        ["reported_by_user_id", "created_at"],
    )
    op.create_index("idx_spot_reports_status_created", "spot_reports", ["status", "created_at"])

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("recipient", sa.String(64), nullable=False),
        sa.Column("priority", sa.String(16), nullable=False, server_default=sa.text("'LOW'")),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "priority IN ('LOW','MEDIUM','HIGH','URGENT')",
            name="ck_outbox_events_priority",
        ),
    )
    op.create_index("idx_outbox_events_status_created", "outbox_events", ["status", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_outbox_events_status_created", table_name="outbox_events")
    op.drop_table("outbox_events")
    op.drop_table("spot_reports")
    op.drop_index("uq_redemptions_user_reward_live", table_name="redemptions")
    op.drop_table("redemptions")
    op.drop_table("rewards")
    op.drop_table("sponsors")
    op.drop_table("user_badges")
    op.drop_table("badge_definitions")
    op.drop_table("xp_history")
    op.drop_table("xp_transactions")
    op.drop_table("verification_logs")
    op.drop_table("spots")
    op.drop_table("users")
