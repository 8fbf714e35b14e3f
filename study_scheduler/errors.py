"""Error taxonomy for the study scheduler."""

from typing import Optional


class SchedulerError(Exception):
    """Base class for all scheduler errors."""


class ValidationError(SchedulerError):
    """Raised when input data is malformed. Never retried."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class InvalidInputError(ValidationError):
    """Raised when an operation argument is out of range."""


class NotFoundError(SchedulerError):
    """Raised when a template or profile is unknown to the store."""

    def __init__(self, kind: str, key: str, user_id: Optional[str] = None):
        self.kind = kind
        self.key = key
        self.user_id = user_id
        owner = f" for user {user_id}" if user_id else ""
        super().__init__(f"{kind} not found: {key}{owner}")


class StaleProfileError(SchedulerError):
    """Raised when a profile write loses an optimistic concurrency race."""

    def __init__(self, user_id: str, expected_version: int, actual_version: int):
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Profile for {user_id} changed: expected version "
            f"{expected_version}, found {actual_version}"
        )
