from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.errors import EngineError
from app.db.repo.spots_repo import SpotsRepo
from app.db.session import Database
from app.moderation.reports import ReportService
from app.services.notifications import NotificationDispatcher
from app.verification.service import VerificationService
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import MAINTENANCE_QUEUE, celery_app

logger = structlog.get_logger(__name__)
PENDING_VERIFICATION_GRACE = timedelta(minutes=2)
PENDING_VERIFICATION_BATCH_SIZE = 50


async def run_reported_spot_rescan_async(database: Database) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with database.session_factory.begin() as session:
        rescan = await ReportService.rescan_reported_spots(
            session,
            now_utc=now_utc,
            batch_size=get_settings().report_rescan_batch_size,
        )
    await NotificationDispatcher(database).dispatch(rescan.notifications)

    result = {"spots_scanned": rescan.spots_scanned, "spots_flagged": rescan.spots_flagged}
    if rescan.spots_flagged > 0:
        logger.warning("reported_spot_rescan_flagged", **result)
    else:
        logger.info("reported_spot_rescan_finished", **result)
    return result


async def run_pending_spot_verification_async(database: Database) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with database.session_factory() as session:
        spot_ids = await SpotsRepo.list_unverified_pending_ids(
            session,
            created_before_utc=now_utc - PENDING_VERIFICATION_GRACE,
            limit=PENDING_VERIFICATION_BATCH_SIZE,
        )

    dispatcher = NotificationDispatcher(database)
    decided = 0
    failed = 0
    for spot_id in spot_ids:
        try:
            outcome = await VerificationService.verify_spot(
                database,
                spot_id=spot_id,
                now_utc=now_utc,
                dispatcher=dispatcher,
            )
        except (EngineError, SQLAlchemyError) as exc:
            failed += 1
            logger.warning(
                "pending_spot_verification_failed",
                spot_id=str(spot_id),
                error_type=type(exc).__name__,
            )
            continue
        if outcome.detailed_scores:
            decided += 1

    result = {
        "spots_checked": len(spot_ids),
        "spots_decided": decided,
        "spots_failed": failed,
    }
    logger.info("pending_spot_verification_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.moderation_maintenance.run_reported_spot_rescan")
def run_reported_spot_rescan() -> dict[str, int]:
    return run_async_job(run_reported_spot_rescan_async)


@celery_app.task(name="app.workers.tasks.moderation_maintenance.run_pending_spot_verification")
def run_pending_spot_verification() -> dict[str, int]:
    return run_async_job(run_pending_spot_verification_async)


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "reported-spot-rescan-every-10-minutes": {
            "task": "app.workers.tasks.moderation_maintenance.run_reported_spot_rescan",
            "schedule": 600.0,
            "options": {"queue": MAINTENANCE_QUEUE},
        },
        "pending-spot-verification-every-5-minutes": {
            "task": "app.workers.tasks.moderation_maintenance.run_pending_spot_verification",
            "schedule": 300.0,
            "options": {"queue": MAINTENANCE_QUEUE},
        },
    }
)
