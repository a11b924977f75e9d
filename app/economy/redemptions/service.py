from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import EngineError
from app.db.models.redemptions import Redemption
from app.db.models.rewards import Reward
from app.db.models.sponsors import Sponsor
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.rewards_repo import RewardsRepo
from app.db.repo.sponsors_repo import SponsorsRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.redemptions.codes import (
    build_redemption_code,
    parse_redemption_code,
    parse_reward_code,
    parse_uuid,
)
from app.economy.redemptions.constants import (
    QR_EXPIRY_MINUTES_MAX,
    QR_EXPIRY_MINUTES_MIN,
    QR_PAYLOAD_VERSION_MIN,
)
from app.economy.redemptions.errors import (
    InvalidQrCodeError,
    InvalidQrSettingsError,
    InvalidRedemptionCodeError,
    InvalidRewardCodeError,
    QrExpiredError,
    QrSignatureMismatchError,
    QrVersionSupersededError,
    RedemptionAlreadyExistsError,
    RedemptionAlreadyUsedError,
    RedemptionNotFoundError,
    RedemptionPermissionError,
    RewardExpiredError,
    RewardInactiveError,
    RewardNotFoundError,
    RewardSoldOutError,
    SponsorNotFoundError,
    SponsorOwnershipError,
)
from app.economy.redemptions.signing import (
    QrPayload,
    decode_qr,
    encode_qr,
    generate_nonce,
    generate_secret,
    has_valid_signature,
)
from app.economy.redemptions.types import (
    QrIssueResult,
    QrSettingsResult,
    QrVerificationResult,
    RedemptionResult,
    RedemptionValidationResult,
    RewardPreview,
)
from app.economy.xp.errors import InsufficientXpError, XpUserNotFoundError
from app.economy.xp.service import XpService
from app.services.notifications import Notification, NotificationType

logger = structlog.get_logger(__name__)


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _reward_unavailable_error(reward: Reward, *, now_utc: datetime) -> EngineError | None:
    if not reward.is_active:
        return RewardInactiveError()
    if reward.expires_at is not None and reward.expires_at < now_utc:
        return RewardExpiredError()
    if reward.max_redemptions is not None and reward.current_redemptions >= reward.max_redemptions:
        return RewardSoldOutError()
    return None


class SponsorQrService:
    @staticmethod
    async def _get_owned_sponsor_for_update(
        session: AsyncSession,
        *,
        sponsor_id: UUID,
        caller_user_id: int,
    ) -> Sponsor:
        sponsor = await SponsorsRepo.get_by_id_for_update(session, sponsor_id)
        if sponsor is None:
            raise SponsorNotFoundError
        if sponsor.owner_user_id != caller_user_id:
            raise SponsorOwnershipError
        return sponsor

    @staticmethod
    def _ensure_secret(sponsor: Sponsor, *, now_utc: datetime) -> None:
        if sponsor.qr_secret:
            return
        sponsor.qr_secret = generate_secret()
        sponsor.qr_version = QR_PAYLOAD_VERSION_MIN
        sponsor.qr_expiry_minutes = get_settings().qr_default_expiry_minutes
        sponsor.updated_at = now_utc
        logger.info("sponsor_qr_secret_created", sponsor_id=str(sponsor.id))

    @staticmethod
    def _issue(sponsor: Sponsor, *, now_utc: datetime) -> QrIssueResult:
        assert sponsor.qr_secret is not None
        generated_at_ms = _epoch_ms(now_utc)
        nonce = generate_nonce()
        payload = QrPayload(
            v=sponsor.qr_version,
            sid=str(sponsor.id),
            ts=generated_at_ms,
            nonce=nonce,
        )
        qr_data = encode_qr(payload, secret=sponsor.qr_secret)

        sponsor.qr_generated_at = now_utc
        sponsor.last_qr_nonce = nonce
        sponsor.updated_at = now_utc
        return QrIssueResult(
            sponsor_id=sponsor.id,
            qr_data=qr_data,
            version=sponsor.qr_version,
            expires_in_seconds=sponsor.qr_expiry_minutes * 60,
            generated_at_ms=generated_at_ms,
        )

    @staticmethod
    async def issue_qr(
        session: AsyncSession,
        *,
        sponsor_id: UUID,
        caller_user_id: int,
        now_utc: datetime,
    ) -> QrIssueResult:
        sponsor = await SponsorQrService._get_owned_sponsor_for_update(
            session,
            sponsor_id=sponsor_id,
            caller_user_id=caller_user_id,
        )
        SponsorQrService._ensure_secret(sponsor, now_utc=now_utc)
        result = SponsorQrService._issue(sponsor, now_utc=now_utc)
        await session.flush()
        logger.info("sponsor_qr_issued", sponsor_id=str(sponsor_id), version=result.version)
        return result

    @staticmethod
    async def rotate_qr(
        session: AsyncSession,
        *,
        sponsor_id: UUID,
        caller_user_id: int,
        now_utc: datetime,
    ) -> QrIssueResult:
        sponsor = await SponsorQrService._get_owned_sponsor_for_update(
            session,
            sponsor_id=sponsor_id,
            caller_user_id=caller_user_id,
        )
        SponsorQrService._ensure_secret(sponsor, now_utc=now_utc)
        previous_version = sponsor.qr_version
        sponsor.qr_version = previous_version + 1
        result = SponsorQrService._issue(sponsor, now_utc=now_utc)
        await session.flush()
        logger.info(
            "sponsor_qr_rotated",
            sponsor_id=str(sponsor_id),
            previous_version=previous_version,
            version=result.version,
        )
        return result

    @staticmethod
    async def update_qr_settings(
        session: AsyncSession,
        *,
        sponsor_id: UUID,
        caller_user_id: int,
        expiry_minutes: int,
        now_utc: datetime,
    ) -> QrSettingsResult:
        if not QR_EXPIRY_MINUTES_MIN <= expiry_minutes <= QR_EXPIRY_MINUTES_MAX:
            raise InvalidQrSettingsError

        sponsor = await SponsorQrService._get_owned_sponsor_for_update(
            session,
            sponsor_id=sponsor_id,
            caller_user_id=caller_user_id,
        )
        sponsor.qr_expiry_minutes = expiry_minutes
        sponsor.updated_at = now_utc
        await session.flush()
        return QrSettingsResult(sponsor_id=sponsor.id, expiry_minutes=expiry_minutes)

    @staticmethod
    async def verify_qr(
        session: AsyncSession,
        *,
        qr_data: str,
        now_utc: datetime,
    ) -> QrVerificationResult:
        """Check signature, then version, then age of a scanned sponsor QR."""
        signed = decode_qr(qr_data)
        sponsor_id = parse_uuid(signed.sid)
        if sponsor_id is None:
            raise InvalidQrCodeError

        sponsor = await SponsorsRepo.get_by_id(session, sponsor_id)
        if sponsor is None:
            raise SponsorNotFoundError
        if not sponsor.qr_secret:
            raise InvalidQrCodeError

        if not has_valid_signature(signed, secret=sponsor.qr_secret):
            logger.warning("sponsor_qr_signature_mismatch", sponsor_id=str(sponsor_id))
            raise QrSignatureMismatchError
        if signed.v != sponsor.qr_version:
            raise QrVersionSupersededError

        skew_ms = get_settings().qr_clock_skew_seconds * 1000
        now_ms = _epoch_ms(now_utc)
        if signed.ts > now_ms + skew_ms:
            raise InvalidQrCodeError("QR code timestamp is in the future")
        expires_at_ms = signed.ts + sponsor.qr_expiry_minutes * 60 * 1000
        if now_ms > expires_at_ms + skew_ms:
            raise QrExpiredError

        return QrVerificationResult(
            sponsor_id=sponsor_id,
            version=signed.v,
            issued_at_ms=signed.ts,
            expires_at_ms=expires_at_ms,
            nonce=signed.nonce,
        )


class RedemptionService:
    @staticmethod
    def _reward_id_from_code(qr_code: str) -> UUID:
        code = qr_code.strip()
        if not code:
            raise InvalidRewardCodeError("QR code is required")

        raw_reward_id = parse_reward_code(code, scheme=get_settings().deep_link_scheme)
        if raw_reward_id is None:
            raise InvalidRewardCodeError
        reward_id = parse_uuid(raw_reward_id)
        if reward_id is None:
            raise RewardNotFoundError
        return reward_id

    @staticmethod
    async def preview_reward(
        session: AsyncSession,
        *,
        qr_code: str,
        now_utc: datetime,
    ) -> RewardPreview:
        code = qr_code.strip()
        raw_reward_id = parse_reward_code(code, scheme=get_settings().deep_link_scheme) if code else None
        reward_id = parse_uuid(raw_reward_id) if raw_reward_id is not None else None
        reward = await RewardsRepo.get_by_id(session, reward_id) if reward_id is not None else None
        if reward is None:
            return RewardPreview(valid=False, message="Reward not found")

        unavailable = _reward_unavailable_error(reward, now_utc=now_utc)
        return RewardPreview(
            valid=unavailable is None,
            message=str(unavailable) if unavailable is not None else "Reward available",
            reward_id=reward.id,
            title=reward.title,
            xp_required=reward.xp_required,
            is_active=reward.is_active,
            expires_at=reward.expires_at,
            current_redemptions=reward.current_redemptions,
            max_redemptions=reward.max_redemptions,
        )

    @staticmethod
    async def redeem_by_qr(
        session: AsyncSession,
        *,
        user_id: int,
        qr_code: str,
        now_utc: datetime,
    ) -> RedemptionResult:
        reward_id = RedemptionService._reward_id_from_code(qr_code)

        reward = await RewardsRepo.get_by_id_for_update(session, reward_id)
        if reward is None:
            raise RewardNotFoundError
        unavailable = _reward_unavailable_error(reward, now_utc=now_utc)
        if unavailable is not None:
            raise unavailable

        existing = await RedemptionsRepo.get_live_for_user_reward(
            session,
            user_id=user_id,
            reward_id=reward_id,
        )
        if existing is not None:
            raise RedemptionAlreadyExistsError

        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise XpUserNotFoundError
        if user.xp_points < reward.xp_required:
            shortfall = reward.xp_required - user.xp_points
            raise InsufficientXpError(
                f"Insufficient XP. You need {shortfall} more XP to redeem this reward."
            )

        redemption_id = uuid4()
        redemption_code = build_redemption_code(
            redemption_id,
            scheme=get_settings().deep_link_scheme,
        )
        await RedemptionsRepo.create(
            session,
            redemption=Redemption(
                id=redemption_id,
                user_id=user_id,
                reward_id=reward.id,
                sponsor_id=reward.sponsor_id,
                xp_used=reward.xp_required,
                redemption_code=redemption_code,
                scanned_code=qr_code.strip(),
                redeemed_at=now_utc,
                used=False,
            ),
        )
        debit = await XpService.debit_for_redemption(
            session,
            user=user,
            amount=reward.xp_required,
            redemption_id=redemption_id,
            reward_id=reward.id,
            reward_title=reward.title,
            now_utc=now_utc,
        )
        reward.current_redemptions += 1
        reward.updated_at = now_utc
        await session.flush()

        logger.info(
            "reward_redeemed",
            user_id=user_id,
            reward_id=str(reward.id),
            redemption_id=str(redemption_id),
            xp_used=reward.xp_required,
            new_xp=debit.new_xp,
        )
        return RedemptionResult(
            redemption_id=redemption_id,
            reward_id=reward.id,
            reward_title=reward.title,
            sponsor_id=reward.sponsor_id,
            xp_deducted=reward.xp_required,
            new_xp=debit.new_xp,
            new_level=debit.new_level,
            redemption_code=redemption_code,
            notifications=[
                Notification.for_user(
                    user_id,
                    NotificationType.REWARD_REDEEMED,
                    {
                        "reward_id": str(reward.id),
                        "reward_title": reward.title,
                        "redemption_id": str(redemption_id),
                        "xp_used": reward.xp_required,
                        "new_xp": debit.new_xp,
                    },
                )
            ],
        )

    @staticmethod
    async def validate_redemption(
        session: AsyncSession,
        *,
        caller_user_id: int,
        redemption_code: str,
        now_utc: datetime,
    ) -> RedemptionValidationResult:
        raw_redemption_id = parse_redemption_code(
            redemption_code.strip(),
            scheme=get_settings().deep_link_scheme,
        )
        if raw_redemption_id is None:
            raise InvalidRedemptionCodeError
        redemption_id = parse_uuid(raw_redemption_id)
        if redemption_id is None:
            raise RedemptionNotFoundError

        redemption = await RedemptionsRepo.get_by_id_for_update(session, redemption_id)
        if redemption is None:
            raise RedemptionNotFoundError

        sponsor = await SponsorsRepo.get_by_id(session, redemption.sponsor_id)
        if sponsor is None or sponsor.owner_user_id != caller_user_id:
            raise RedemptionPermissionError
        if redemption.used:
            used_at = redemption.used_at.isoformat() if redemption.used_at is not None else "unknown"
            raise RedemptionAlreadyUsedError(f"This redemption was already used at {used_at}")

        redemption.used = True
        redemption.used_at = now_utc
        redemption.validated_by_user_id = caller_user_id
        await session.flush()

        logger.info(
            "redemption_validated",
            redemption_id=str(redemption_id),
            sponsor_id=str(redemption.sponsor_id),
            user_id=redemption.user_id,
        )
        return RedemptionValidationResult(
            redemption_id=redemption.id,
            reward_id=redemption.reward_id,
            user_id=redemption.user_id,
            xp_used=redemption.xp_used,
            redeemed_at=redemption.redeemed_at,
            used_at=now_utc,
            notifications=[
                Notification.for_user(
                    redemption.user_id,
                    NotificationType.REDEMPTION_USED,
                    {
                        "redemption_id": str(redemption.id),
                        "reward_id": str(redemption.reward_id),
                        "used_at": now_utc.isoformat(),
                    },
                )
            ],
        )

