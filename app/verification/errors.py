from app.core.errors import FailedPreconditionError, InvalidArgumentError, NotFoundError


class SpotNotFoundError(NotFoundError):
    default_message = "Spot not found"


class SpotImmutableError(FailedPreconditionError):
    default_message = "Spot can no longer change status"


class InvalidSpotPayloadError(InvalidArgumentError):
    default_message = "Invalid spot payload"


class SubmitterNotFoundError(NotFoundError):
    default_message = "User not found"
