from app.core.errors import (
    AlreadyExistsError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)


class SponsorNotFoundError(NotFoundError):
    default_message = "Sponsor account not found"


class SponsorOwnershipError(PermissionDeniedError):
    default_message = "You are not authorized to manage this sponsor"


class InvalidQrSettingsError(InvalidArgumentError):
    default_message = "Expiry must be between 1 and 60 minutes"


class InvalidQrCodeError(InvalidArgumentError):
    default_message = "Invalid QR code"


class QrSignatureMismatchError(InvalidArgumentError):
    default_message = "QR code signature is invalid"


class QrVersionSupersededError(FailedPreconditionError):
    default_message = "QR code has been replaced by a newer one"


class QrExpiredError(FailedPreconditionError):
    default_message = "QR code has expired"


class InvalidRewardCodeError(InvalidArgumentError):
    default_message = "Invalid QR Code. Please scan a valid reward QR code."


class RewardNotFoundError(NotFoundError):
    default_message = "Invalid Reward. This reward no longer exists or has been removed."


class RewardInactiveError(FailedPreconditionError):
    default_message = "Reward Inactive. This reward is no longer available for redemption."


class RewardExpiredError(FailedPreconditionError):
    default_message = "Reward Expired. This reward has expired and is no longer valid."


class RewardSoldOutError(FailedPreconditionError):
    default_message = "Reward Sold Out. This reward has reached its maximum redemption limit."


class RedemptionAlreadyExistsError(AlreadyExistsError):
    default_message = "Already Redeemed. You have already redeemed this reward."


class InvalidRedemptionCodeError(InvalidArgumentError):
    default_message = "Invalid redemption QR code format"


class RedemptionNotFoundError(NotFoundError):
    default_message = "Redemption not found. Invalid QR code."


class RedemptionPermissionError(PermissionDeniedError):
    default_message = "You are not authorized to validate this redemption"


class RedemptionAlreadyUsedError(AlreadyExistsError):
    default_message = "This redemption has already been used"
