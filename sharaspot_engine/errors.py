"""Engine error taxonomy.

Callers distinguish failure kinds by class:
- ValidationConflictError: vote rejected, contribution unchanged
- RateLimitExceededError: daily cap or repeated check-in, no side effects
- NotFoundError: unknown contribution or user
- InsufficientCoinsError / InvalidTransactionError: ledger refused the entry

Storage failures raised by persistence are never wrapped here.
"""


class EngineError(Exception):
    """Base exception for contribution engine errors."""
    pass


class ValidationConflictError(EngineError):
    """Raised when a vote conflicts with the voter's existing state."""
    pass


class DuplicateVoteError(ValidationConflictError):
    """Raised when a user repeats the vote they already hold."""

    def __init__(self, user_id: str, contribution_id: str, is_validation: bool):
        self.user_id = user_id
        self.contribution_id = contribution_id
        self.is_validation = is_validation
        direction = "validated" if is_validation else "invalidated"
        super().__init__(f"User {user_id} already {direction} contribution {contribution_id}")


class SelfValidationError(ValidationConflictError):
    """Raised when a user votes on their own contribution."""

    def __init__(self, user_id: str, contribution_id: str):
        self.user_id = user_id
        self.contribution_id = contribution_id
        super().__init__(f"Cannot validate your own contribution ({contribution_id})")


class RateLimitExceededError(EngineError):
    """Raised when a per-day action limit has been reached."""
    pass


class DailyValidationLimitError(RateLimitExceededError):
    """Raised when the daily validation cap is reached."""

    def __init__(self, user_id: str, limit: int):
        self.user_id = user_id
        self.limit = limit
        super().__init__(f"Daily validation limit reached ({limit}/day)")


class AlreadyCheckedInError(RateLimitExceededError):
    """Raised on a second check-in within the same calendar day."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Already checked in today")


class NotFoundError(EngineError):
    """Raised when an operation references an unknown entity."""
    pass


class ContributionNotFoundError(NotFoundError):
    def __init__(self, contribution_id: str):
        self.contribution_id = contribution_id
        super().__init__(f"Contribution not found: {contribution_id}")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No rewards profile for user: {user_id}")


class InvalidTransactionError(EngineError):
    """Raised when a transaction amount does not match its type's sign rule."""
    pass


class InsufficientCoinsError(EngineError):
    """Raised when spending more coins than the user holds."""

    def __init__(self, user_id: str, balance: int, requested: int):
        self.user_id = user_id
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"User {user_id} has {balance} coins, cannot spend {requested}"
        )
