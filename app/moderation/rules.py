from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from app.moderation.constants import (
    AUTO_FLAG_RECENT_REPORTS,
    AUTO_FLAG_RECENT_WINDOW,
    AUTO_FLAG_SAME_REASON_REPORTS,
    AUTO_FLAG_TOTAL_REPORTS,
    COORDINATED_MIN_REPORTERS,
    COORDINATED_MIN_REPORTS,
    COORDINATED_WINDOW,
    REPORT_DESCRIPTION_MAX_LENGTH,
    REPORTER_ABUSE_MAX_REPORTS,
)
from app.moderation.types import AutoFlagDecision, CoordinatedReportingCheck, ReportView


def normalize_description(description: str | None) -> str:
    return (description or "").strip()[:REPORT_DESCRIPTION_MAX_LENGTH]


def evaluate_auto_flag(reports: Sequence[ReportView], *, now_utc: datetime) -> AutoFlagDecision:
    recent_since = now_utc - AUTO_FLAG_RECENT_WINDOW
    recent_reports = sum(1 for report in reports if report.created_at >= recent_since)
    reason_counts = Counter(report.reason for report in reports)
    max_same_reason = max(reason_counts.values(), default=0)

    should_flag = (
        recent_reports >= AUTO_FLAG_RECENT_REPORTS
        or len(reports) >= AUTO_FLAG_TOTAL_REPORTS
        or max_same_reason >= AUTO_FLAG_SAME_REASON_REPORTS
    )
    return AutoFlagDecision(
        should_flag=should_flag,
        recent_reports=recent_reports,
        total_reports=len(reports),
        max_same_reason_reports=max_same_reason,
    )


def detect_coordinated_reporting(
    reports: Sequence[ReportView],
    *,
    now_utc: datetime,
) -> CoordinatedReportingCheck:
    """Many distinct reporters hitting one spot with the same reason inside an hour."""
    window_since = now_utc - COORDINATED_WINDOW
    in_window = [report for report in reports if report.created_at >= window_since]
    reporters = {report.reporter_user_id for report in in_window}
    reasons = sorted({report.reason.value for report in in_window})

    suspected = (
        len(in_window) >= COORDINATED_MIN_REPORTS
        and len(reporters) >= COORDINATED_MIN_REPORTERS
        and len(reasons) == 1
    )
    return CoordinatedReportingCheck(
        suspected=suspected,
        reports_in_window=len(in_window),
        distinct_reporters=len(reporters),
        reasons=reasons,
    )


def is_reporter_abusive(reports_last_day: int) -> bool:
    return reports_last_day > REPORTER_ABUSE_MAX_REPORTS
