from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.geo import bounding_box
from app.db.models.spots import Spot
from app.db.models.verification_logs import VerificationLog
from app.db.repo.spots_repo import SpotsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.repo.verification_logs_repo import VerificationLogsRepo
from app.db.session import Database
from app.services.notifications import (
    Notification,
    NotificationDispatcher,
    NotificationPriority,
    NotificationType,
)
from app.trust.service import TrustLedgerService
from app.verification.constants import (
    DUPLICATE_SEARCH_DELTA_DEGREES,
    LOCATION_HISTORY_LIMIT,
    LOCATION_HISTORY_WINDOW,
    NEUTRAL_SIGNAL_SCORES,
    REASON_ERROR_DURING_VERIFICATION,
    SIGNAL_CONTENT_QUALITY,
    SIGNAL_DUPLICATE_DETECTION,
    SIGNAL_ERROR_REASONS,
    SIGNAL_LOCATION_ACCURACY,
    SIGNAL_PHOTO_VERIFICATION,
    SIGNAL_USER_TRUST,
)
from app.verification.content import score_content
from app.verification.duplicates import score_duplicates
from app.verification.errors import SpotNotFoundError
from app.verification.location import score_location
from app.verification.photo import score_photo
from app.verification.scoring import combine_signals
from app.verification.transitions import transition_spot_status
from app.verification.trust_signal import score_user_trust
from app.verification.types import (
    NearbySpot,
    SignalResult,
    SpotSnapshot,
    SubmissionPoint,
    TrustProfile,
    VerificationResult,
    VerificationStatus,
)

logger = structlog.get_logger(__name__)

SignalReader = Callable[[AsyncSession], Awaitable[SignalResult]]


def _snapshot_from_model(spot: Spot) -> SpotSnapshot:
    return SpotSnapshot(
        id=spot.id,
        creator_user_id=spot.creator_user_id,
        latitude=spot.latitude,
        longitude=spot.longitude,
        created_at=spot.created_at,
        title=spot.title,
        description=spot.description,
        category=spot.category,
        gps_accuracy_m=spot.gps_accuracy_m,
        is_mock_location=spot.is_mock_location,
        has_photo=spot.has_photo,
        photo_hash=spot.photo_hash,
        exif_taken_at=spot.exif_taken_at,
        exif_latitude=spot.exif_latitude,
        exif_longitude=spot.exif_longitude,
    )


def _stored_result(spot: Spot) -> VerificationResult:
    return VerificationResult(
        status=VerificationStatus(spot.verification_status),
        score=spot.verification_score,
        reasons=list(spot.verification_reasons or []),
        flags=list(spot.verification_flags or []),
        detailed_scores=dict(spot.detailed_scores or {}),
        idempotent_replay=True,
    )


def _is_already_verified(spot: Spot) -> bool:
    return (
        spot.verification_status != VerificationStatus.PENDING.value
        or spot.verified_at is not None
    )


def _utc_day_start(value: datetime) -> datetime:
    utc_value = value.astimezone(timezone.utc)
    return utc_value.replace(hour=0, minute=0, second=0, microsecond=0)


def build_review_notifications(
    spot: SpotSnapshot,
    result: VerificationResult,
) -> list[Notification]:
    if result.status not in (VerificationStatus.PENDING, VerificationStatus.FLAGGED):
        return []

    flagged = result.status == VerificationStatus.FLAGGED
    return [
        Notification.for_admins(
            NotificationType.SPOT_REVIEW_REQUIRED,
            {
                "spot_id": str(spot.id),
                "spot_title": spot.title,
                "creator_user_id": spot.creator_user_id,
                "status": result.status.value,
                "score": result.score,
                "flags": list(result.flags),
            },
            NotificationPriority.HIGH if flagged else NotificationPriority.MEDIUM,
        )
    ]


class VerificationService:
    @staticmethod
    async def _read_location(session: AsyncSession, spot: SpotSnapshot) -> SignalResult:
        recent = await SpotsRepo.list_recent_by_creator(
            session,
            creator_user_id=spot.creator_user_id,
            since_utc=spot.created_at - LOCATION_HISTORY_WINDOW,
            until_utc=spot.created_at,
            exclude_spot_id=spot.id,
            limit=LOCATION_HISTORY_LIMIT,
        )
        points = [
            SubmissionPoint(latitude=row.latitude, longitude=row.longitude, created_at=row.created_at)
            for row in recent
        ]
        return score_location(spot, points)

    @staticmethod
    async def _read_photo(session: AsyncSession, spot: SpotSnapshot) -> SignalResult:
        hash_collision = False
        if spot.has_photo and spot.photo_hash:
            hash_collision = await SpotsRepo.exists_other_with_photo_hash(
                session,
                photo_hash=spot.photo_hash,
                until_utc=spot.created_at,
                exclude_spot_id=spot.id,
            )
        return score_photo(spot, hash_collision=hash_collision)

    @staticmethod
    async def _read_duplicates(session: AsyncSession, spot: SpotSnapshot) -> SignalResult:
        rows = await SpotsRepo.list_in_bounding_box(
            session,
            box=bounding_box(
                spot.latitude,
                spot.longitude,
                delta_degrees=DUPLICATE_SEARCH_DELTA_DEGREES,
            ),
            until_utc=spot.created_at,
            exclude_spot_id=spot.id,
        )
        nearby = [
            NearbySpot(id=row.id, latitude=row.latitude, longitude=row.longitude, title=row.title)
            for row in rows
        ]
        return score_duplicates(spot, nearby)

    @staticmethod
    async def _read_trust(
        session: AsyncSession,
        spot: SpotSnapshot,
        now_utc: datetime,
    ) -> SignalResult:
        user = await UsersRepo.get_by_id(session, spot.creator_user_id)
        if user is None:
            return score_user_trust(None, submissions_today=0, now_utc=now_utc)

        submissions_today = await SpotsRepo.count_by_creator_since(
            session,
            creator_user_id=spot.creator_user_id,
            since_utc=_utc_day_start(spot.created_at),
            until_utc=spot.created_at,
            exclude_spot_id=spot.id,
        )
        profile = TrustProfile(
            trust_score=float(user.trust_score),
            created_at=user.created_at,
            spot_submissions=user.spot_submissions,
            spot_approved_count=user.spot_approved_count,
            spot_rejected_count=user.spot_rejected_count,
            is_shadow_banned=user.is_shadow_banned,
        )
        return score_user_trust(profile, submissions_today=submissions_today, now_utc=now_utc)

    @staticmethod
    async def _run_signal(
        database: Database,
        *,
        signal: str,
        spot_id: UUID,
        reader: SignalReader,
    ) -> SignalResult:
        """Run one signal in its own read session; failures fall back to a neutral score."""
        timeout_seconds = get_settings().verification_read_timeout_seconds
        try:
            async with database.session_factory() as session:
                return await asyncio.wait_for(reader(session), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "verification_signal_timeout",
                spot_id=str(spot_id),
                signal=signal,
                timeout_seconds=timeout_seconds,
            )
        except SQLAlchemyError as exc:
            logger.warning(
                "verification_signal_failed",
                spot_id=str(spot_id),
                signal=signal,
                error_type=type(exc).__name__,
            )
        return SignalResult(
            score=NEUTRAL_SIGNAL_SCORES[signal],
            reasons=[SIGNAL_ERROR_REASONS[signal]],
        )

    @staticmethod
    async def compute_signals(
        database: Database,
        spot: SpotSnapshot,
        *,
        now_utc: datetime,
    ) -> dict[str, SignalResult]:
        location, photo, duplicates, trust = await asyncio.gather(
            VerificationService._run_signal(
                database,
                signal=SIGNAL_LOCATION_ACCURACY,
                spot_id=spot.id,
                reader=lambda session: VerificationService._read_location(session, spot),
            ),
            VerificationService._run_signal(
                database,
                signal=SIGNAL_PHOTO_VERIFICATION,
                spot_id=spot.id,
                reader=lambda session: VerificationService._read_photo(session, spot),
            ),
            VerificationService._run_signal(
                database,
                signal=SIGNAL_DUPLICATE_DETECTION,
                spot_id=spot.id,
                reader=lambda session: VerificationService._read_duplicates(session, spot),
            ),
            VerificationService._run_signal(
                database,
                signal=SIGNAL_USER_TRUST,
                spot_id=spot.id,
                reader=lambda session: VerificationService._read_trust(session, spot, now_utc),
            ),
        )
        return {
            SIGNAL_LOCATION_ACCURACY: location,
            SIGNAL_PHOTO_VERIFICATION: photo,
            SIGNAL_DUPLICATE_DETECTION: duplicates,
            SIGNAL_USER_TRUST: trust,
            SIGNAL_CONTENT_QUALITY: score_content(
                title=spot.title,
                description=spot.description,
                category=spot.category,
            ),
        }

    @staticmethod
    async def _persist(
        database: Database,
        *,
        spot_id: UUID,
        result: VerificationResult,
        now_utc: datetime,
    ) -> VerificationResult:
        async with database.session_factory.begin() as session:
            spot = await SpotsRepo.get_by_id_for_update(session, spot_id)
            if spot is None:
                raise SpotNotFoundError
            if _is_already_verified(spot):
                logger.info("spot_verification_replayed", spot_id=str(spot_id))
                return _stored_result(spot)

            spot.verification_score = result.score
            spot.verification_reasons = list(result.reasons)
            spot.verification_flags = list(result.flags)
            spot.detailed_scores = dict(result.detailed_scores)
            spot.verified_at = now_utc
            if result.status == VerificationStatus.FLAGGED:
                spot.flagged_at = now_utc
                spot.flag_reason = ", ".join(result.flags)

            await VerificationLogsRepo.create(
                session,
                log=VerificationLog(
                    spot_id=spot_id,
                    status=result.status.value,
                    score=result.score,
                    reasons=list(result.reasons),
                    flags=list(result.flags),
                    detailed_scores=dict(result.detailed_scores),
                    created_at=now_utc,
                ),
            )
            await TrustLedgerService.apply_verification_outcome(
                session,
                user_id=spot.creator_user_id,
                status=result.status.value,
                now_utc=now_utc,
            )
            transition = await transition_spot_status(
                session,
                spot=spot,
                new_status=result.status,
                now_utc=now_utc,
                reason="Automatic verification",
            )
            result.notifications.extend(transition.notifications)
        return result

    @staticmethod
    async def _persist_error_fallback(
        database: Database,
        *,
        spot_id: UUID,
        now_utc: datetime,
    ) -> VerificationResult:
        async with database.session_factory.begin() as session:
            spot = await SpotsRepo.get_by_id_for_update(session, spot_id)
            if spot is None:
                raise SpotNotFoundError
            if _is_already_verified(spot):
                return _stored_result(spot)

            spot.verification_score = 0
            spot.verification_reasons = [REASON_ERROR_DURING_VERIFICATION]
            spot.verification_flags = []
            spot.detailed_scores = {}
            spot.updated_at = now_utc
        return VerificationResult(
            status=VerificationStatus.PENDING,
            score=0,
            reasons=[REASON_ERROR_DURING_VERIFICATION],
            flags=[],
            detailed_scores={},
        )

    @staticmethod
    async def verify_spot(
        database: Database,
        *,
        spot_id: UUID,
        now_utc: datetime,
        dispatcher: NotificationDispatcher | None = None,
    ) -> VerificationResult:
        """Score a PENDING spot, persist the decision and settle trust and XP.

        Calling it again for a spot that already has a decision returns the
        stored outcome without side effects.
        """
        async with database.session_factory() as session:
            spot_row = await SpotsRepo.get_by_id(session, spot_id)
            if spot_row is None:
                raise SpotNotFoundError
            if _is_already_verified(spot_row):
                return _stored_result(spot_row)
            spot = _snapshot_from_model(spot_row)

        try:
            signals = await VerificationService.compute_signals(database, spot, now_utc=now_utc)
            result = combine_signals(signals)
            result = await VerificationService._persist(
                database,
                spot_id=spot_id,
                result=result,
                now_utc=now_utc,
            )
        except SpotNotFoundError:
            raise
        except Exception:
            logger.exception("spot_verification_failed", spot_id=str(spot_id))
            return await VerificationService._persist_error_fallback(
                database,
                spot_id=spot_id,
                now_utc=now_utc,
            )

        if result.idempotent_replay:
            return result

        result.notifications.extend(build_review_notifications(spot, result))
        logger.info(
            "spot_verified",
            spot_id=str(spot_id),
            status=result.status.value,
            score=result.score,
            flags=result.flags,
        )
        await (dispatcher or NotificationDispatcher(database)).dispatch(result.notifications)
        return result
