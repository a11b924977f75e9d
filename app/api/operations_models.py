from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from app.economy.xp.constants import XP_REASON_MAX_LENGTH
from app.moderation.constants import (
    LIST_REPORTS_DEFAULT_LIMIT,
    REPORT_DESCRIPTION_MAX_LENGTH,
    REPORT_NOTES_MAX_LENGTH,
)


class AwardXpRequest(BaseModel):
    action: str = Field(min_length=1, max_length=48)
    amount: int = Field(gt=0)
    resource_id: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = Field(default=None, max_length=XP_REASON_MAX_LENGTH)


class AdjustXpRequest(BaseModel):
    user_id: int = Field(gt=0)
    delta: int
    reason: str = Field(min_length=1, max_length=XP_REASON_MAX_LENGTH)


class ReportSpotRequest(BaseModel):
    spot_id: UUID
    reason: str = Field(min_length=1, max_length=32)
    # Longer text is cut down rather than rejected.
    description: str | None = Field(default=None, max_length=REPORT_DESCRIPTION_MAX_LENGTH * 10)


class ResolveReportRequest(BaseModel):
    report_id: UUID
    action: str = Field(min_length=1, max_length=32)
    notes: str | None = Field(default=None, max_length=REPORT_NOTES_MAX_LENGTH)


class ListReportsRequest(BaseModel):
    status: str | None = "PENDING"
    limit: int = Field(default=LIST_REPORTS_DEFAULT_LIMIT, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class ReviewSpotRequest(BaseModel):
    spot_id: UUID
    decision: str = Field(min_length=1, max_length=16)
    reason: str | None = Field(default=None, max_length=XP_REASON_MAX_LENGTH)


class SponsorQrSettingsRequest(BaseModel):
    sponsor_id: UUID
    expiry_minutes: int
