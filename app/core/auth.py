from __future__ import annotations

from dataclasses import dataclass

from app.core.errors import PermissionDeniedError, UnauthenticatedError


@dataclass(frozen=True, slots=True)
class CallerContext:
    """Verified identity handed in by the transport layer."""

    user_id: int | None
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> CallerContext:
        return cls(user_id=None, is_admin=False)


def require_user(caller: CallerContext | None) -> int:
    if caller is None or caller.user_id is None:
        raise UnauthenticatedError
    return caller.user_id


def require_admin(caller: CallerContext | None) -> int:
    user_id = require_user(caller)
    if caller is None or not caller.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user_id
