from __future__ import annotations

import re
from uuid import UUID

from app.economy.redemptions.constants import (
    IDENTIFIER_CHARS_PATTERN,
    LEGACY_REWARD_CODE_PREFIX,
    RAW_IDENTIFIER_PATTERN,
    REDEMPTION_DEEP_LINK_PATH,
    REWARD_DEEP_LINK_PATH,
)

_RAW_IDENTIFIER = re.compile(RAW_IDENTIFIER_PATTERN)


def _deep_link_pattern(*, scheme: str, path: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(scheme)}://{path}/({IDENTIFIER_CHARS_PATTERN})")


def build_reward_code(reward_id: UUID | str, *, scheme: str) -> str:
    return f"{scheme}://{REWARD_DEEP_LINK_PATH}/{reward_id}"


def build_redemption_code(redemption_id: UUID | str, *, scheme: str) -> str:
    return f"{scheme}://{REDEMPTION_DEEP_LINK_PATH}/{redemption_id}"


def parse_reward_code(code: str, *, scheme: str) -> str | None:
    """Extract a reward id: deep link, then legacy REWARD_ code, then raw id."""
    match = _deep_link_pattern(scheme=scheme, path=REWARD_DEEP_LINK_PATH).search(code)
    if match:
        return match.group(1)

    if code.startswith(LEGACY_REWARD_CODE_PREFIX):
        parts = code.split("_")
        if len(parts) >= 2 and parts[1]:
            return parts[1]

    if _RAW_IDENTIFIER.match(code):
        return code
    return None


def parse_redemption_code(code: str, *, scheme: str) -> str | None:
    match = _deep_link_pattern(scheme=scheme, path=REDEMPTION_DEEP_LINK_PATH).search(code)
    if match:
        return match.group(1)

    if "/" in code:
        parts = code.split("/")
        if len(parts) == 2 and parts[1]:
            return parts[1]
    return None


def parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None
