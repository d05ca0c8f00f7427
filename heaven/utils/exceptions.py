"""
Exception handling utilities.

Defines the referral network error taxonomy and categorized exception
types for proper error handling by request handlers.
"""


class NetworkError(Exception):
    """Base class for referral network engine errors."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GraphLoadFailure(NetworkError):
    """Raised when the referral graph cannot be loaded from storage."""

    retryable = True

    def __init__(self, root_user_id: str, max_depth: int, reason: str) -> None:
        super().__init__(
            f"Failed to load referral network of user {root_user_id} "
            f"(depth {max_depth}): {reason}"
        )
        self.root_user_id = root_user_id
        self.max_depth = max_depth


class GraphIntegrityError(NetworkError):
    """Raised on a cycle or malformed tree; indicates upstream data corruption."""

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


class UserNotFound(NetworkError):
    """Raised when the queried root user does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class InvalidLevel(NetworkError):
    """Raised when a claim targets a level without a reward."""

    def __init__(self, level: int) -> None:
        super().__init__(
            f"Invalid level {level}. Only Heaven 1, 3, 5, 7 have rewards."
        )
        self.level = level


class DuplicateClaim(NetworkError):
    """Raised when the (user, level) reward was already claimed."""

    def __init__(self, user_id: str, level: int, status: str) -> None:
        super().__init__(
            f"You have already claimed Heaven {level} reward. Status: {status}"
        )
        self.user_id = user_id
        self.level = level
        self.status = status


class TargetNotMet(NetworkError):
    """Raised when a level's active-member target is not reached yet."""

    def __init__(self, level: int, count: int, target: int) -> None:
        super().__init__(
            f"Heaven {level} is not completed yet. "
            f"You have {count}/{target} members."
        )
        self.level = level
        self.count = count
        self.target = target


class ClaimConflictError(NetworkError):
    """Raised by the claim store when the (user, level) unique key is taken."""

    def __init__(self, user_id: str, level: int) -> None:
        super().__init__(
            f"Reward claim for user {user_id} level {level} already exists"
        )
        self.user_id = user_id
        self.level = level


class ClaimNotFound(NetworkError):
    """Raised when an admin action targets an unknown claim."""

    def __init__(self, claim_id: int) -> None:
        super().__init__(f"Reward claim {claim_id} not found")
        self.claim_id = claim_id


class InvalidClaimTransition(NetworkError):
    """Raised on a claim status change outside PENDING -> APPROVED -> DELIVERED."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move reward claim from {current} to {requested}"
        )
        self.current = current
        self.requested = requested


# Exception categories based on handling strategy

# Safe to retry at the caller's discretion
RETRYABLE = (
    GraphLoadFailure,
)

# Client input or business rule outcomes - never retried
CLIENT_ERRORS = (
    InvalidLevel,
    DuplicateClaim,
    TargetNotMet,
    UserNotFound,
    ClaimNotFound,
    InvalidClaimTransition,
)

# Must be logged loudly - data corruption upstream
MUST_ALERT = (
    GraphIntegrityError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if exception is a transient failure.

    Args:
        exc: Exception to check

    Returns:
        True if the caller may retry the operation
    """
    return isinstance(exc, RETRYABLE)


def is_client_error(exc: Exception) -> bool:
    """
    Check if exception is a client input or business rule outcome.

    Args:
        exc: Exception to check

    Returns:
        True if exception should be reported back to the user as-is
    """
    return isinstance(exc, CLIENT_ERRORS)


def must_alert(exc: Exception) -> bool:
    """
    Check if exception indicates upstream data corruption.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged at critical level
    """
    return isinstance(exc, MUST_ALERT)
