from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from app.db.models import (  # noqa: F401
    BadgeDefinition,
    OutboxEvent,
    Redemption,
    Reward,
    Sponsor,
    Spot,
    SpotReport,
    User,
    UserBadge,
    VerificationLog,
    XpHistory,
    XpTransaction,
)
from app.db.models.base import Base


def _check_names(table_name: str) -> set[str | None]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)}


def _unique_names(table_name: str) -> set[str | None]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, UniqueConstraint)}


def _index_names(table_name: str) -> set[str | None]:
    return {index.name for index in Base.metadata.tables[table_name].indexes}


def test_all_engine_tables_registered() -> None:
    expected_tables = {
        "users",
        "spots",
        "verification_logs",
        "spot_reports",
        "xp_transactions",
        "xp_history",
        "badge_definitions",
        "user_badges",
        "sponsors",
        "rewards",
        "redemptions",
        "outbox_events",
    }
    assert expected_tables.issubset(set(Base.metadata.tables))


def test_balance_and_score_constraints_present() -> None:
    assert {
        "ck_users_xp_points_non_negative",
        "ck_users_xp_pending_non_negative",
        "ck_users_trust_score_range",
    }.issubset(_check_names("users"))

    assert {
        "ck_spots_verification_status",
        "ck_spots_verification_score_range",
        "ck_spots_xp_released_xor_denied",
    }.issubset(_check_names("spots"))

    assert "ck_xp_transactions_new_xp_non_negative" in _check_names("xp_transactions")
    assert "ck_rewards_current_redemptions_non_negative" in _check_names("rewards")
    assert "ck_sponsors_qr_expiry_range" in _check_names("sponsors")


def test_uniqueness_guards_present() -> None:
    assert "uq_spot_reports_spot_reporter" in _unique_names("spot_reports")
    assert "uq_user_badges_user_badge" in _unique_names("user_badges")

    redemption_indexes = {index.name: index for index in Base.metadata.tables["redemptions"].indexes}
    assert redemption_indexes["uq_redemptions_user_reward_live"].unique

    xp_transactions = Base.metadata.tables["xp_transactions"]
    assert xp_transactions.c.idempotency_key.unique
    assert Base.metadata.tables["redemptions"].c.redemption_code.unique


def test_lookup_indexes_present() -> None:
    assert {"idx_spots_lat_lng", "idx_spots_photo_hash", "idx_spots_creator_created"}.issubset(
        _index_names("spots")
    )
    assert {"idx_spot_reports_spot_created", "idx_spot_reports_reporter_created"}.issubset(
        _index_names("spot_reports")
    )
    assert "idx_xp_history_user_action_awarded" in _index_names("xp_history")
    assert "idx_outbox_events_status_created" in _index_names("outbox_events")
