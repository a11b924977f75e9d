from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.users import User
from app.db.models.xp_transactions import XpTransaction
from app.db.repo.ledger_repo import LedgerRepo
from app.db.repo.users_repo import UsersRepo
from app.db.repo.xp_history_repo import XpHistoryRepo
from app.economy.xp.badges import BadgeService
from app.economy.xp.constants import (
    ACTION_ADMIN_ADJUSTMENT,
    ACTION_REWARD_REDEMPTION,
    ACTION_SPOT_APPROVED,
    ACTION_SPOT_REJECTED,
    COUNTER_BY_ACTION,
    MILESTONE_CHALLENGES_COMPLETED,
    MILESTONE_SPOTS_DISCOVERED,
    RESERVED_ACTIONS,
    XP_REASON_MAX_LENGTH,
)
from app.economy.xp.errors import (
    InsufficientXpError,
    InvalidXpAdjustmentError,
    InvalidXpAmountError,
    XpCooldownActiveError,
    XpDailyLimitReachedError,
    XpUserNotFoundError,
)
from app.economy.xp.levels import level_for_xp
from app.economy.xp.metadata import XpLedgerMetadata
from app.economy.xp.rules import (
    build_progress,
    day_start_utc,
    evaluate_cooldown,
    evaluate_daily_limit,
    idempotency_key_for_award,
    idempotency_key_for_denial,
    idempotency_key_for_redemption,
    rule_for_action,
)
from app.economy.xp.types import (
    CooldownCheck,
    DailyLimitCheck,
    DuplicateAwardCheck,
    LedgerEntryType,
    XpAdjustResult,
    XpAwardResult,
    XpDenialResult,
    XpProgress,
    XpRule,
)

logger = structlog.get_logger(__name__)


class XpService:
    @staticmethod
    async def _get_user_for_update(session: AsyncSession, user_id: int) -> User:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise XpUserNotFoundError
        return user

    @staticmethod
    def _build_entry(
        *,
        user_id: int,
        action: str,
        amount: int,
        description: str,
        previous_xp: int,
        new_xp: int,
        tx_type: LedgerEntryType,
        now_utc: datetime,
        resource_id: str | None = None,
        actor_user_id: int | None = None,
        idempotency_key: str | None = None,
        metadata: XpLedgerMetadata | None = None,
    ) -> XpTransaction:
        previous_level = level_for_xp(previous_xp)
        new_level = level_for_xp(new_xp)
        return XpTransaction(
            user_id=user_id,
            action=action,
            amount=amount,
            description=description[:XP_REASON_MAX_LENGTH],
            previous_xp=previous_xp,
            new_xp=new_xp,
            previous_level=previous_level,
            new_level=new_level,
            leveled_up=new_level > previous_level,
            tx_type=tx_type.value,
            resource_id=resource_id,
            actor_user_id=actor_user_id,
            idempotency_key=idempotency_key,
            metadata_=(metadata or XpLedgerMetadata()).to_json(),
            created_at=now_utc,
        )

    @staticmethod
    def _replay_result(user: User, entry: XpTransaction) -> XpAwardResult:
        return XpAwardResult(
            awarded=False,
            idempotent_replay=True,
            xp_awarded=entry.amount,
            new_total_xp=user.xp_points,
            new_level=level_for_xp(user.xp_points),
            leveled_up=False,
        )

    @staticmethod
    async def _credit(
        session: AsyncSession,
        *,
        user: User,
        action: str,
        amount: int,
        description: str,
        now_utc: datetime,
        resource_id: str | None,
        idempotency_key: str | None,
        metadata: XpLedgerMetadata | None,
        release_pending: bool = False,
    ) -> XpAwardResult:
        previous_xp = user.xp_points
        new_xp = previous_xp + amount
        new_level = level_for_xp(new_xp)
        leveled_up = new_level > level_for_xp(previous_xp)

        user.xp_points = new_xp
        user.level = new_level
        if release_pending:
            user.xp_pending = max(0, user.xp_pending - amount)
        counter = COUNTER_BY_ACTION.get(action)
        if counter == MILESTONE_SPOTS_DISCOVERED:
            user.spots_discovered += 1
        elif counter == MILESTONE_CHALLENGES_COMPLETED:
            user.challenges_completed += 1
        user.last_active_at = now_utc
        user.updated_at = now_utc

        await LedgerRepo.create(
            session,
            entry=XpService._build_entry(
                user_id=user.id,
                action=action,
                amount=amount,
                description=description,
                previous_xp=previous_xp,
                new_xp=new_xp,
                tx_type=LedgerEntryType.AWARD,
                now_utc=now_utc,
                resource_id=resource_id,
                idempotency_key=idempotency_key,
                metadata=metadata,
            ),
        )
        unlocked = await BadgeService.check_and_unlock_badges(
            session,
            user=user,
            xp=new_xp,
            level=new_level,
            now_utc=now_utc,
        )
        return XpAwardResult(
            awarded=True,
            idempotent_replay=False,
            xp_awarded=amount,
            new_total_xp=new_xp,
            new_level=new_level,
            leveled_up=leveled_up,
            unlocked_badges=unlocked,
        )

    @staticmethod
    async def check_duplicate_award(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        resource_id: str,
    ) -> DuplicateAwardCheck:
        entry = await LedgerRepo.get_by_idempotency_key(
            session,
            idempotency_key_for_award(user_id=user_id, action=action, resource_id=resource_id),
        )
        if entry is None:
            entry = await LedgerRepo.get_award_for_resource(
                session,
                user_id=user_id,
                action=action,
                resource_id=resource_id,
            )
        if entry is None:
            return DuplicateAwardCheck(exists=False)
        return DuplicateAwardCheck(exists=True, amount=entry.amount)

    @staticmethod
    async def check_cooldown(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        entity_id: str | None,
        rule: XpRule,
        now_utc: datetime,
    ) -> CooldownCheck:
        if rule.cooldown_minutes <= 0:
            return CooldownCheck(allowed=True)

        last_awarded_at = await XpHistoryRepo.get_last_awarded_at(
            session,
            user_id=user_id,
            action=action,
            entity_id=entity_id if rule.per_entity_cooldown else None,
        )
        return evaluate_cooldown(last_awarded_at=last_awarded_at, now_utc=now_utc, rule=rule)

    @staticmethod
    async def check_daily_limit(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        rule: XpRule,
        now_utc: datetime,
    ) -> DailyLimitCheck:
        if rule.max_daily is None:
            return DailyLimitCheck(allowed=True)

        since_utc = day_start_utc(now_utc, timezone_name=get_settings().xp_daily_limit_timezone)
        current_count = await XpHistoryRepo.count_since(
            session,
            user_id=user_id,
            action=action,
            since_utc=since_utc,
        )
        return evaluate_daily_limit(current_count=current_count, rule=rule)

    @staticmethod
    async def award_xp(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        amount: int,
        now_utc: datetime,
        resource_id: str | None = None,
        description: str | None = None,
        metadata: XpLedgerMetadata | None = None,
    ) -> XpAwardResult:
        if not action or action in RESERVED_ACTIONS:
            raise InvalidXpAmountError
        rule = rule_for_action(action)
        if amount <= 0:
            raise InvalidXpAmountError
        if amount > rule.max_amount:
            raise InvalidXpAmountError(f"XP amount exceeds maximum for action: {action}")

        user = await XpService._get_user_for_update(session, user_id)

        idempotency_key = None
        if resource_id is not None:
            idempotency_key = idempotency_key_for_award(
                user_id=user_id,
                action=action,
                resource_id=resource_id,
            )
            existing = await LedgerRepo.get_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                logger.warning(
                    "xp_award_duplicate_prevented",
                    user_id=user_id,
                    action=action,
                    resource_id=resource_id,
                )
                return XpService._replay_result(user, existing)

        cooldown = await XpService.check_cooldown(
            session,
            user_id=user_id,
            action=action,
            entity_id=resource_id,
            rule=rule,
            now_utc=now_utc,
        )
        if not cooldown.allowed:
            raise XpCooldownActiveError(cooldown.remaining_seconds or 0)

        daily_limit = await XpService.check_daily_limit(
            session,
            user_id=user_id,
            action=action,
            rule=rule,
            now_utc=now_utc,
        )
        if not daily_limit.allowed:
            raise XpDailyLimitReachedError(daily_limit.current_count or 0, rule.max_daily or 0)

        result = await XpService._credit(
            session,
            user=user,
            action=action,
            amount=amount,
            description=description or f"XP for {action}",
            now_utc=now_utc,
            resource_id=resource_id,
            idempotency_key=idempotency_key,
            metadata=metadata,
        )
        await XpHistoryRepo.create(
            session,
            user_id=user_id,
            action=action,
            entity_id=resource_id,
            awarded_at=now_utc,
        )
        logger.info(
            "xp_awarded",
            user_id=user_id,
            action=action,
            amount=amount,
            new_total_xp=result.new_total_xp,
            new_level=result.new_level,
            leveled_up=result.leveled_up,
        )
        return result

    @staticmethod
    async def release_spot_xp(
        session: AsyncSession,
        *,
        user_id: int,
        spot_id: UUID,
        amount: int,
        description: str,
        now_utc: datetime,
    ) -> XpAwardResult:
        """Move a spot's pending XP into the balance, once per spot."""
        if amount < 0:
            raise InvalidXpAmountError
        user = await XpService._get_user_for_update(session, user_id)

        idempotency_key = idempotency_key_for_award(
            user_id=user_id,
            action=ACTION_SPOT_APPROVED,
            resource_id=str(spot_id),
        )
        existing = await LedgerRepo.get_by_idempotency_key(session, idempotency_key)
        if existing is not None:
            logger.warning("spot_xp_release_duplicate_prevented", user_id=user_id, spot_id=str(spot_id))
            return XpService._replay_result(user, existing)

        result = await XpService._credit(
            session,
            user=user,
            action=ACTION_SPOT_APPROVED,
            amount=amount,
            description=description,
            now_utc=now_utc,
            resource_id=str(spot_id),
            idempotency_key=idempotency_key,
            metadata=XpLedgerMetadata(spot_id=str(spot_id)),
            release_pending=True,
        )
        logger.info(
            "spot_xp_released",
            user_id=user_id,
            spot_id=str(spot_id),
            amount=amount,
            new_total_xp=result.new_total_xp,
        )
        return result

    @staticmethod
    async def deny_xp(
        session: AsyncSession,
        *,
        user_id: int,
        spot_id: UUID,
        amount: int,
        reason: str,
        now_utc: datetime,
    ) -> XpDenialResult:
        """Log a denied spot reward. The XP balance is left untouched."""
        user = await XpService._get_user_for_update(session, user_id)

        idempotency_key = idempotency_key_for_denial(user_id=user_id, spot_id=str(spot_id))
        existing = await LedgerRepo.get_by_idempotency_key(session, idempotency_key)
        if existing is not None:
            return XpDenialResult(
                recorded=False,
                idempotent_replay=True,
                xp_denied=-existing.amount,
                xp_pending=user.xp_pending,
            )

        user.xp_pending = max(0, user.xp_pending - amount)
        user.updated_at = now_utc
        await LedgerRepo.create(
            session,
            entry=XpService._build_entry(
                user_id=user_id,
                action=ACTION_SPOT_REJECTED,
                amount=-amount,
                description=reason,
                previous_xp=user.xp_points,
                new_xp=user.xp_points,
                tx_type=LedgerEntryType.DENIAL,
                now_utc=now_utc,
                resource_id=str(spot_id),
                idempotency_key=idempotency_key,
                metadata=XpLedgerMetadata(spot_id=str(spot_id), reason=reason),
            ),
        )
        logger.info("spot_xp_denied", user_id=user_id, spot_id=str(spot_id), amount=amount)
        return XpDenialResult(
            recorded=True,
            idempotent_replay=False,
            xp_denied=amount,
            xp_pending=user.xp_pending,
        )

    @staticmethod
    async def adjust_xp(
        session: AsyncSession,
        *,
        user_id: int,
        delta: int,
        reason: str,
        actor_user_id: int,
        now_utc: datetime,
    ) -> XpAdjustResult:
        normalized_reason = (reason or "").strip()
        if delta == 0 or not normalized_reason:
            raise InvalidXpAdjustmentError

        user = await XpService._get_user_for_update(session, user_id)
        previous_xp = user.xp_points
        new_xp = max(0, previous_xp + delta)
        applied_delta = new_xp - previous_xp
        new_level = level_for_xp(new_xp)

        user.xp_points = new_xp
        user.level = new_level
        user.updated_at = now_utc

        await LedgerRepo.create(
            session,
            entry=XpService._build_entry(
                user_id=user_id,
                action=ACTION_ADMIN_ADJUSTMENT,
                amount=applied_delta,
                description=normalized_reason,
                previous_xp=previous_xp,
                new_xp=new_xp,
                tx_type=LedgerEntryType.ADMIN,
                now_utc=now_utc,
                actor_user_id=actor_user_id,
                metadata=XpLedgerMetadata(requested_delta=delta, reason=normalized_reason),
            ),
        )
        if applied_delta > 0:
            await BadgeService.check_and_unlock_badges(
                session,
                user=user,
                xp=new_xp,
                level=new_level,
                now_utc=now_utc,
            )
        logger.info(
            "xp_adjusted",
            user_id=user_id,
            actor_user_id=actor_user_id,
            requested_delta=delta,
            applied_delta=applied_delta,
            previous_xp=previous_xp,
            new_xp=new_xp,
        )
        return XpAdjustResult(
            previous_xp=previous_xp,
            new_xp=new_xp,
            applied_delta=applied_delta,
            requested_delta=delta,
            new_level=new_level,
            leveled_up=new_level > level_for_xp(previous_xp),
        )

    @staticmethod
    async def debit_for_redemption(
        session: AsyncSession,
        *,
        user: User,
        amount: int,
        redemption_id: UUID,
        reward_id: UUID,
        reward_title: str,
        now_utc: datetime,
    ) -> XpAdjustResult:
        """Debit a locked user for a reward. Caller holds the user row lock."""
        previous_xp = user.xp_points
        if previous_xp < amount:
            raise InsufficientXpError("Insufficient XP after revalidation")

        new_xp = previous_xp - amount
        new_level = level_for_xp(new_xp)
        user.xp_points = new_xp
        user.level = new_level
        user.updated_at = now_utc

        await LedgerRepo.create(
            session,
            entry=XpService._build_entry(
                user_id=user.id,
                action=ACTION_REWARD_REDEMPTION,
                amount=-amount,
                description=f"Redeemed reward: {reward_title}",
                previous_xp=previous_xp,
                new_xp=new_xp,
                tx_type=LedgerEntryType.ADJUSTMENT,
                now_utc=now_utc,
                resource_id=str(reward_id),
                idempotency_key=idempotency_key_for_redemption(redemption_id=str(redemption_id)),
                metadata=XpLedgerMetadata(
                    reward_id=str(reward_id),
                    redemption_id=str(redemption_id),
                ),
            ),
        )
        return XpAdjustResult(
            previous_xp=previous_xp,
            new_xp=new_xp,
            applied_delta=-amount,
            requested_delta=-amount,
            new_level=new_level,
            leveled_up=False,
        )

    @staticmethod
    async def get_progress(session: AsyncSession, *, user_id: int) -> XpProgress:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise XpUserNotFoundError
        return build_progress(current_xp=user.xp_points, pending_xp=user.xp_pending)
