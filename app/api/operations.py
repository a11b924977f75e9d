from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.operations_models import (
    AdjustXpRequest,
    AwardXpRequest,
    ListReportsRequest,
    ReportSpotRequest,
    ResolveReportRequest,
    ReviewSpotRequest,
    SponsorQrSettingsRequest,
)
from app.core.auth import CallerContext, require_admin, require_user
from app.core.errors import EngineError, InternalError, InvalidArgumentError
from app.core.logging import bind_operation_context
from app.db.session import Database
from app.economy.redemptions.service import RedemptionService, SponsorQrService
from app.economy.redemptions.types import (
    QrIssueResult,
    QrSettingsResult,
    QrVerificationResult,
    RedemptionResult,
    RedemptionValidationResult,
    RewardPreview,
)
from app.economy.xp.service import XpService
from app.economy.xp.types import XpAdjustResult, XpAwardResult, XpProgress
from app.moderation.reports import ReportService
from app.moderation.review import review_spot
from app.moderation.types import ReportSpotResult, ReportSummary, ResolveReportResult, SpotReviewResult
from app.services.notifications import Notification, NotificationDispatcher, NotificationType
from app.verification.errors import InvalidSpotPayloadError
from app.verification.schemas import SpotSubmission
from app.verification.service import VerificationService
from app.verification.submission import submit_spot
from app.verification.types import SpotSubmissionResult, VerificationResult

logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT")
ModelT = TypeVar("ModelT", bound=BaseModel)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse(
    model: type[ModelT],
    payload: Mapping[str, object],
    *,
    error: type[InvalidArgumentError] = InvalidArgumentError,
) -> ModelT:
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in item["loc"]) for item in exc.errors())
        raise error(f"Invalid fields: {fields}") from exc


class EngineOperations:
    """Entry points for callers: identity checks, one transaction per call, typed errors.

    Notifications collected during an operation are dispatched only after its
    transaction committed.
    """

    def __init__(
        self,
        database: Database,
        *,
        dispatcher: NotificationDispatcher | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._database = database
        self._dispatcher = dispatcher or NotificationDispatcher(database)
        self._clock = clock

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[ResultT]],
    ) -> ResultT:
        try:
            async with self._database.session_factory.begin() as session:
                result = await work(session)
        except EngineError as exc:
            logger.info("operation_rejected", operation=operation, error=exc.code)
            raise
        except Exception as exc:
            logger.exception("operation_failed", operation=operation)
            raise InternalError from exc

        notifications: list[Notification] = getattr(result, "notifications", None) or []
        await self._dispatcher.dispatch(notifications)
        return result

    async def submit_spot(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> SpotSubmissionResult:
        user_id = require_user(caller)
        bind_operation_context(operation="submit_spot", user_id=user_id)
        submission = _parse(SpotSubmission, payload, error=InvalidSpotPayloadError)
        now_utc = self._clock()
        return await self._run(
            "submit_spot",
            lambda session: submit_spot(
                session,
                creator_user_id=user_id,
                submission=submission,
                now_utc=now_utc,
            ),
        )

    async def verify_spot(self, spot_id: UUID) -> VerificationResult:
        bind_operation_context(operation="verify_spot", spot_id=str(spot_id))
        try:
            return await VerificationService.verify_spot(
                self._database,
                spot_id=spot_id,
                now_utc=self._clock(),
                dispatcher=self._dispatcher,
            )
        except EngineError:
            raise
        except Exception as exc:
            logger.exception("operation_failed", operation="verify_spot", spot_id=str(spot_id))
            raise InternalError from exc

    async def review_spot(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> SpotReviewResult:
        admin_user_id = require_admin(caller)
        bind_operation_context(operation="review_spot", user_id=admin_user_id)
        request = _parse(ReviewSpotRequest, payload)
        now_utc = self._clock()
        return await self._run(
            "review_spot",
            lambda session: review_spot(
                session,
                admin_user_id=admin_user_id,
                spot_id=request.spot_id,
                decision=request.decision,
                reason=request.reason,
                now_utc=now_utc,
            ),
        )

    async def report_spot(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> ReportSpotResult:
        user_id = require_user(caller)
        bind_operation_context(operation="report_spot", user_id=user_id)
        request = _parse(ReportSpotRequest, payload)
        now_utc = self._clock()
        return await self._run(
            "report_spot",
            lambda session: ReportService.report_spot(
                session,
                reporter_user_id=user_id,
                spot_id=request.spot_id,
                reason=request.reason,
                description=request.description,
                now_utc=now_utc,
            ),
        )

    async def resolve_report(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> ResolveReportResult:
        admin_user_id = require_admin(caller)
        bind_operation_context(operation="resolve_report", user_id=admin_user_id)
        request = _parse(ResolveReportRequest, payload)
        now_utc = self._clock()
        return await self._run(
            "resolve_report",
            lambda session: ReportService.resolve_report(
                session,
                admin_user_id=admin_user_id,
                report_id=request.report_id,
                action=request.action,
                notes=request.notes,
                now_utc=now_utc,
            ),
        )

    async def list_reports(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object] | None = None,
    ) -> list[ReportSummary]:
        admin_user_id = require_admin(caller)
        bind_operation_context(operation="list_reports", user_id=admin_user_id)
        request = _parse(ListReportsRequest, payload or {})
        return await self._run(
            "list_reports",
            lambda session: ReportService.list_reports(
                session,
                status=request.status,
                limit=request.limit,
                offset=request.offset,
            ),
        )

    async def award_xp(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> XpAwardResult:
        user_id = require_user(caller)
        bind_operation_context(operation="award_xp", user_id=user_id)
        request = _parse(AwardXpRequest, payload)
        now_utc = self._clock()
        result = await self._run(
            "award_xp",
            lambda session: XpService.award_xp(
                session,
                user_id=user_id,
                action=request.action,
                amount=request.amount,
                now_utc=now_utc,
                resource_id=request.resource_id,
                description=request.description,
            ),
        )
        await self._dispatcher.dispatch(
            [
                Notification.for_user(
                    user_id,
                    NotificationType.BADGE_UNLOCKED,
                    {"badge_id": badge.badge_id, "title": badge.title},
                )
                for badge in result.unlocked_badges
            ]
        )
        return result

    async def adjust_xp(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> XpAdjustResult:
        admin_user_id = require_admin(caller)
        bind_operation_context(operation="adjust_xp", user_id=admin_user_id)
        request = _parse(AdjustXpRequest, payload)
        now_utc = self._clock()
        return await self._run(
            "adjust_xp",
            lambda session: XpService.adjust_xp(
                session,
                user_id=request.user_id,
                delta=request.delta,
                reason=request.reason,
                actor_user_id=admin_user_id,
                now_utc=now_utc,
            ),
        )

    async def get_xp_progress(self, caller: CallerContext | None) -> XpProgress:
        user_id = require_user(caller)
        return await self._run(
            "get_xp_progress",
            lambda session: XpService.get_progress(session, user_id=user_id),
        )

    async def issue_sponsor_qr(
        self,
        caller: CallerContext | None,
        sponsor_id: UUID,
    ) -> QrIssueResult:
        user_id = require_user(caller)
        bind_operation_context(operation="issue_sponsor_qr", user_id=user_id)
        now_utc = self._clock()
        return await self._run(
            "issue_sponsor_qr",
            lambda session: SponsorQrService.issue_qr(
                session,
                sponsor_id=sponsor_id,
                caller_user_id=user_id,
                now_utc=now_utc,
            ),
        )

    async def rotate_sponsor_qr(
        self,
        caller: CallerContext | None,
        sponsor_id: UUID,
    ) -> QrIssueResult:
        user_id = require_user(caller)
        bind_operation_context(operation="rotate_sponsor_qr", user_id=user_id)
        now_utc = self._clock()
        return await self._run(
            "rotate_sponsor_qr",
            lambda session: SponsorQrService.rotate_qr(
                session,
                sponsor_id=sponsor_id,
                caller_user_id=user_id,
                now_utc=now_utc,
            ),
        )

    async def update_sponsor_qr_settings(
        self,
        caller: CallerContext | None,
        payload: Mapping[str, object],
    ) -> QrSettingsResult:
        user_id = require_user(caller)
        bind_operation_context(operation="update_sponsor_qr_settings", user_id=user_id)
        request = _parse(SponsorQrSettingsRequest, payload)
        now_utc = self._clock()
        return await self._run(
            "update_sponsor_qr_settings",
            lambda session: SponsorQrService.update_qr_settings(
                session,
                sponsor_id=request.sponsor_id,
                caller_user_id=user_id,
                expiry_minutes=request.expiry_minutes,
                now_utc=now_utc,
            ),
        )

    async def verify_sponsor_qr(
        self,
        caller: CallerContext | None,
        qr_data: str,
    ) -> QrVerificationResult:
        require_user(caller)
        now_utc = self._clock()
        return await self._run(
            "verify_sponsor_qr",
            lambda session: SponsorQrService.verify_qr(session, qr_data=qr_data, now_utc=now_utc),
        )

    async def preview_reward(
        self,
        caller: CallerContext | None,
        qr_code: str,
    ) -> RewardPreview:
        require_user(caller)
        now_utc = self._clock()
        return await self._run(
            "preview_reward",
            lambda session: RedemptionService.preview_reward(
                session,
                qr_code=qr_code,
                now_utc=now_utc,
            ),
        )

    async def redeem_reward(
        self,
        caller: CallerContext | None,
        qr_code: str,
    ) -> RedemptionResult:
        user_id = require_user(caller)
        bind_operation_context(operation="redeem_reward", user_id=user_id)
        now_utc = self._clock()
        return await self._run(
            "redeem_reward",
            lambda session: RedemptionService.redeem_by_qr(
                session,
                user_id=user_id,
                qr_code=qr_code,
                now_utc=now_utc,
            ),
        )

    async def validate_redemption(
        self,
        caller: CallerContext | None,
        redemption_code: str,
    ) -> RedemptionValidationResult:
        user_id = require_user(caller)
        bind_operation_context(operation="validate_redemption", user_id=user_id)
        now_utc = self._clock()
        return await self._run(
            "validate_redemption",
            lambda session: RedemptionService.validate_redemption(
                session,
                caller_user_id=user_id,
                redemption_code=redemption_code,
                now_utc=now_utc,
            ),
        )
