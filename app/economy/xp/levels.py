from __future__ import annotations

from app.core.config import get_settings


def _resolve_step(step: int | None) -> int:
    resolved = step if step is not None else get_settings().xp_level_step
    return max(1, int(resolved))


def level_for_xp(xp: int, *, step: int | None = None) -> int:
    """Level is floor(xp / step) + 1; negative totals stay on level 1."""
    if xp <= 0:
        return 1
    return xp // _resolve_step(step) + 1


def xp_threshold_for_level(level: int, *, step: int | None = None) -> int:
    return max(0, level - 1) * _resolve_step(step)


def leveled_up(previous_xp: int, new_xp: int, *, step: int | None = None) -> bool:
    return level_for_xp(new_xp, step=step) > level_for_xp(previous_xp, step=step)
