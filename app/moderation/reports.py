from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.spot_reports import SpotReport
from app.db.models.spots import Spot
from app.db.repo.spot_reports_repo import SpotReportsRepo
from app.db.repo.spots_repo import SpotsRepo
from app.moderation.constants import (
    AUTO_FLAG_REASON,
    LIST_REPORTS_DEFAULT_LIMIT,
    LIST_REPORTS_MAX_LIMIT,
    REPORT_NOTES_MAX_LENGTH,
    REPORTER_ABUSE_WINDOW,
)
from app.moderation.errors import (
    DuplicateReportError,
    InvalidReportActionError,
    InvalidReportReasonError,
    InvalidReportStatusError,
    ReportAlreadyResolvedError,
    ReportNotFoundError,
    SelfReportError,
)
from app.moderation.rules import (
    detect_coordinated_reporting,
    evaluate_auto_flag,
    is_reporter_abusive,
    normalize_description,
)
from app.moderation.types import (
    URGENT_REPORT_REASONS,
    ReportAction,
    ReportReason,
    ReportSpotResult,
    ReportStatus,
    ReportSummary,
    ReportView,
    RescanResult,
    ResolveReportResult,
)
from app.services.notifications import Notification, NotificationPriority, NotificationType
from app.verification.errors import SpotNotFoundError
from app.verification.transitions import is_spot_immutable, transition_spot_status
from app.verification.types import VerificationStatus

logger = structlog.get_logger(__name__)


def _report_views(reports: list[SpotReport]) -> list[ReportView]:
    return [
        ReportView(
            reporter_user_id=report.reported_by_user_id,
            reason=ReportReason(report.reason),
            created_at=report.created_at,
        )
        for report in reports
    ]


def _summary(report: SpotReport) -> ReportSummary:
    return ReportSummary(
        report_id=report.id,
        spot_id=report.spot_id,
        reporter_user_id=report.reported_by_user_id,
        reason=report.reason,
        description=report.description,
        status=report.status,
        action=report.action,
        created_at=report.created_at,
        reviewed_at=report.reviewed_at,
    )


class ReportService:
    @staticmethod
    async def _auto_flag_if_needed(
        session: AsyncSession,
        *,
        spot: Spot,
        reports: list[ReportView],
        now_utc: datetime,
    ) -> Notification | None:
        """Flag a still mutable spot once report volume crosses a threshold."""
        decision = evaluate_auto_flag(reports, now_utc=now_utc)
        if not decision.should_flag:
            return None
        if is_spot_immutable(spot) or spot.verification_status == VerificationStatus.FLAGGED.value:
            return None

        await transition_spot_status(
            session,
            spot=spot,
            new_status=VerificationStatus.FLAGGED,
            now_utc=now_utc,
            reason=AUTO_FLAG_REASON,
        )
        spot.flagged_at = now_utc
        spot.flag_reason = AUTO_FLAG_REASON
        logger.warning(
            "spot_auto_flagged",
            spot_id=str(spot.id),
            recent_reports=decision.recent_reports,
            total_reports=decision.total_reports,
            max_same_reason_reports=decision.max_same_reason_reports,
        )
        return Notification.for_admins(
            NotificationType.SPOT_FLAGGED,
            {
                "spot_id": str(spot.id),
                "spot_title": spot.title,
                "reason": AUTO_FLAG_REASON,
                "report_count": decision.total_reports,
            },
            NotificationPriority.HIGH,
        )

    @staticmethod
    async def report_spot(
        session: AsyncSession,
        *,
        reporter_user_id: int,
        spot_id: UUID,
        reason: str,
        description: str | None,
        now_utc: datetime,
    ) -> ReportSpotResult:
        try:
            report_reason = ReportReason(reason)
        except ValueError as exc:
            raise InvalidReportReasonError from exc

        spot = await SpotsRepo.get_by_id_for_update(session, spot_id)
        if spot is None:
            raise SpotNotFoundError
        if spot.creator_user_id == reporter_user_id:
            raise SelfReportError

        existing = await SpotReportsRepo.get_by_spot_and_reporter(
            session,
            spot_id=spot_id,
            reporter_user_id=reporter_user_id,
        )
        if existing is not None:
            raise DuplicateReportError

        report = await SpotReportsRepo.create(
            session,
            report=SpotReport(
                id=uuid4(),
                spot_id=spot_id,
                reported_by_user_id=reporter_user_id,
                reason=report_reason.value,
                description=normalize_description(description),
                status=ReportStatus.PENDING.value,
                review_notes="",
                created_at=now_utc,
            ),
        )
        spot.report_count += 1
        spot.last_reported_at = now_utc
        spot.updated_at = now_utc

        reports = _report_views(await SpotReportsRepo.list_for_spot(session, spot_id=spot_id))
        notifications: list[Notification] = []

        flag_notification = await ReportService._auto_flag_if_needed(
            session,
            spot=spot,
            reports=reports,
            now_utc=now_utc,
        )
        if flag_notification is not None:
            notifications.append(flag_notification)

        coordinated = detect_coordinated_reporting(reports, now_utc=now_utc)
        if coordinated.suspected:
            logger.warning(
                "coordinated_reporting_suspected",
                spot_id=str(spot_id),
                reports_in_window=coordinated.reports_in_window,
                distinct_reporters=coordinated.distinct_reporters,
                reasons=coordinated.reasons,
            )
            notifications.append(
                Notification.for_admins(
                    NotificationType.COORDINATED_REPORTING_SUSPECTED,
                    {
                        "spot_id": str(spot_id),
                        "reports_in_window": coordinated.reports_in_window,
                        "distinct_reporters": coordinated.distinct_reporters,
                        "reasons": coordinated.reasons,
                    },
                    NotificationPriority.HIGH,
                )
            )

        reports_last_day = await SpotReportsRepo.count_by_reporter_since(
            session,
            reporter_user_id=reporter_user_id,
            since_utc=now_utc - REPORTER_ABUSE_WINDOW,
        )
        if is_reporter_abusive(reports_last_day):
            logger.warning(
                "report_abuse_suspected",
                reporter_user_id=reporter_user_id,
                reports_last_day=reports_last_day,
            )
            notifications.append(
                Notification.for_admins(
                    NotificationType.REPORT_ABUSE_SUSPECTED,
                    {"reporter_user_id": reporter_user_id, "reports_last_day": reports_last_day},
                    NotificationPriority.MEDIUM,
                )
            )

        if report_reason in URGENT_REPORT_REASONS:
            notifications.append(
                Notification.for_admins(
                    NotificationType.URGENT_SPOT_REPORT,
                    {
                        "spot_id": str(spot_id),
                        "spot_title": spot.title,
                        "reason": report_reason.value,
                        "report_id": str(report.id),
                    },
                    NotificationPriority.URGENT,
                )
            )

        logger.info(
            "spot_reported",
            spot_id=str(spot_id),
            report_id=str(report.id),
            reporter_user_id=reporter_user_id,
            reason=report_reason.value,
            report_count=spot.report_count,
        )
        return ReportSpotResult(
            report_id=report.id,
            spot_id=spot_id,
            report_count=spot.report_count,
            spot_flagged=flag_notification is not None,
            notifications=notifications,
        )

    @staticmethod
    async def resolve_report(
        session: AsyncSession,
        *,
        admin_user_id: int,
        report_id: UUID,
        action: str,
        notes: str | None,
        now_utc: datetime,
    ) -> ResolveReportResult:
        try:
            report_action = ReportAction(action)
        except ValueError as exc:
            raise InvalidReportActionError from exc

        report = await SpotReportsRepo.get_by_id_for_update(session, report_id)
        if report is None:
            raise ReportNotFoundError
        if report.status == ReportStatus.REVIEWED.value:
            raise ReportAlreadyResolvedError

        review_notes = (notes or "").strip()[:REPORT_NOTES_MAX_LENGTH]
        notifications: list[Notification] = []
        if report_action != ReportAction.DISMISS:
            spot = await SpotsRepo.get_by_id_for_update(session, report.spot_id)
            if spot is None:
                raise SpotNotFoundError

            if report_action == ReportAction.REMOVE_SPOT:
                spot.is_active = False
            elif report_action == ReportAction.EDIT_SPOT:
                spot.needs_correction = True
                spot.correction_notes = review_notes
            elif report_action == ReportAction.WARNING:
                notifications.append(
                    Notification.for_user(
                        spot.creator_user_id,
                        NotificationType.USER_WARNING,
                        {
                            "spot_id": str(spot.id),
                            "spot_title": spot.title,
                            "reason": report.reason,
                            "notes": review_notes,
                        },
                        NotificationPriority.MEDIUM,
                    )
                )
            spot.updated_at = now_utc

        report.status = ReportStatus.REVIEWED.value
        report.action = report_action.value
        report.reviewed_by_user_id = admin_user_id
        report.reviewed_at = now_utc
        report.review_notes = review_notes
        await session.flush()

        logger.info(
            "spot_report_resolved",
            report_id=str(report_id),
            spot_id=str(report.spot_id),
            action=report_action.value,
            admin_user_id=admin_user_id,
        )
        return ResolveReportResult(
            report_id=report.id,
            spot_id=report.spot_id,
            action=report_action,
            reviewed_at=now_utc,
            notifications=notifications,
        )

    @staticmethod
    async def list_reports(
        session: AsyncSession,
        *,
        status: str | None = ReportStatus.PENDING.value,
        limit: int = LIST_REPORTS_DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list[ReportSummary]:
        if status is not None:
            try:
                status = ReportStatus(status).value
            except ValueError as exc:
                raise InvalidReportStatusError from exc

        reports = await SpotReportsRepo.list_page(
            session,
            status=status,
            limit=max(1, min(LIST_REPORTS_MAX_LIMIT, limit)),
            offset=max(0, offset),
        )
        return [_summary(report) for report in reports]

    @staticmethod
    async def rescan_reported_spots(
        session: AsyncSession,
        *,
        now_utc: datetime,
        batch_size: int,
    ) -> RescanResult:
        """Re-run the auto-flag rules for spots that still have unreviewed reports."""
        spot_ids = await SpotReportsRepo.list_spot_ids_with_pending_reports(
            session,
            limit=batch_size,
        )
        result = RescanResult(spots_scanned=0, spots_flagged=0)
        for spot_id in spot_ids:
            spot = await SpotsRepo.get_by_id_for_update(session, spot_id)
            if spot is None:
                continue
            result.spots_scanned += 1
            reports = _report_views(await SpotReportsRepo.list_for_spot(session, spot_id=spot_id))
            notification = await ReportService._auto_flag_if_needed(
                session,
                spot=spot,
                reports=reports,
                now_utc=now_utc,
            )
            if notification is not None:
                result.spots_flagged += 1
                result.notifications.append(notification)
        return result
