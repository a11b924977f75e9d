from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.spots import Spot
from app.db.repo.spots_repo import SpotsRepo
from app.db.repo.users_repo import UsersRepo
from app.verification.errors import SubmitterNotFoundError
from app.verification.schemas import SpotSubmission
from app.verification.types import SpotSubmissionResult, VerificationStatus

logger = structlog.get_logger(__name__)


async def submit_spot(
    session: AsyncSession,
    *,
    creator_user_id: int,
    submission: SpotSubmission,
    now_utc: datetime,
) -> SpotSubmissionResult:
    """Store a new PENDING spot and park its reward in the creator's pending XP."""
    user = await UsersRepo.get_by_id_for_update(session, creator_user_id)
    if user is None:
        raise SubmitterNotFoundError

    xp_reward = get_settings().spot_default_xp_reward
    spot = await SpotsRepo.create(
        session,
        spot=Spot(
            id=uuid4(),
            creator_user_id=creator_user_id,
            latitude=submission.latitude,
            longitude=submission.longitude,
            gps_accuracy_m=submission.gps_accuracy_m,
            is_mock_location=submission.is_mock_location,
            has_photo=submission.photo_hash is not None,
            photo_hash=submission.photo_hash,
            exif_taken_at=submission.exif_taken_at,
            exif_latitude=submission.exif_latitude,
            exif_longitude=submission.exif_longitude,
            title=submission.title.strip(),
            description=submission.description.strip(),
            category=submission.category.strip().upper(),
            verification_status=VerificationStatus.PENDING.value,
            verification_score=0,
            verification_reasons=[],
            verification_flags=[],
            detailed_scores={},
            xp_reward=xp_reward,
            xp_released=False,
            xp_denied=False,
            report_count=0,
            is_active=True,
            needs_correction=False,
            created_at=now_utc,
            updated_at=now_utc,
        ),
    )
    user.xp_pending += xp_reward
    user.last_active_at = now_utc
    user.updated_at = now_utc
    await session.flush()

    logger.info(
        "spot_submitted",
        spot_id=str(spot.id),
        creator_user_id=creator_user_id,
        xp_reward=xp_reward,
    )
    return SpotSubmissionResult(
        spot_id=spot.id,
        status=VerificationStatus.PENDING,
        xp_reward=xp_reward,
        xp_pending=user.xp_pending,
    )
