from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.economy.xp.constants import XP_REASON_MAX_LENGTH


class XpLedgerMetadata(BaseModel):
    """Closed set of context fields a ledger entry may carry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    spot_id: str | None = Field(default=None, max_length=64)
    challenge_id: str | None = Field(default=None, max_length=64)
    reward_id: str | None = Field(default=None, max_length=64)
    redemption_id: str | None = Field(default=None, max_length=64)
    requested_delta: int | None = None
    reason: str | None = Field(default=None, max_length=XP_REASON_MAX_LENGTH)
    source: str | None = Field(default=None, max_length=64)

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)
