from app.core.errors import (
    AlreadyExistsError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)


class InvalidReportReasonError(InvalidArgumentError):
    default_message = "Invalid report reason"


class InvalidReportActionError(InvalidArgumentError):
    default_message = "Invalid moderation action"


class InvalidReportStatusError(InvalidArgumentError):
    default_message = "Invalid report status"


class InvalidReviewDecisionError(InvalidArgumentError):
    default_message = "Decision must be APPROVED or REJECTED"


class SelfReportError(PermissionDeniedError):
    default_message = "You cannot report your own spot"


class DuplicateReportError(AlreadyExistsError):
    default_message = "You have already reported this spot"


class ReportNotFoundError(NotFoundError):
    default_message = "Report not found"


class ReportAlreadyResolvedError(FailedPreconditionError):
    default_message = "Report has already been reviewed"
