from app.core.errors import FailedPreconditionError, InvalidArgumentError, NotFoundError


class XpUserNotFoundError(NotFoundError):
    default_message = "User not found"


class InvalidXpAmountError(InvalidArgumentError):
    default_message = "Invalid XP award parameters"


class InvalidXpAdjustmentError(InvalidArgumentError):
    default_message = "userId, adjustment and reason are required"


class InsufficientXpError(FailedPreconditionError):
    default_message = "Insufficient XP"


class XpCooldownActiveError(FailedPreconditionError):
    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        minutes, seconds = divmod(remaining_seconds, 60)
        wait = f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"
        super().__init__(f"Please wait {wait} before earning XP from this action again")


class XpDailyLimitReachedError(FailedPreconditionError):
    def __init__(self, current_count: int, max_daily: int) -> None:
        self.current_count = current_count
        self.max_daily = max_daily
        super().__init__(f"Daily limit reached ({max_daily} times per day)")
