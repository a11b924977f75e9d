from __future__ import annotations


class EngineError(Exception):
    code = "internal"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(EngineError):
    code = "unauthenticated"
    default_message = "User must be authenticated"


class PermissionDeniedError(EngineError):
    code = "permission-denied"
    default_message = "Permission denied"


class InvalidArgumentError(EngineError):
    code = "invalid-argument"
    default_message = "Invalid argument"


class NotFoundError(EngineError):
    code = "not-found"
    default_message = "Not found"


class AlreadyExistsError(EngineError):
    code = "already-exists"
    default_message = "Already exists"


class FailedPreconditionError(EngineError):
    code = "failed-precondition"
    default_message = "Precondition failed"


class InternalError(EngineError):
    code = "internal"
    default_message = "Internal error"


def error_payload(exc: EngineError) -> dict[str, str]:
    return {"error": exc.code, "message": exc.message}
