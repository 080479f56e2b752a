"""Error taxonomy surfaced by the daily log core."""

from typing import Optional


class DailyLogError(Exception):
    """Base class for all daily log errors."""


class ValidationError(DailyLogError):
    """Malformed or out-of-range input, raised before any store call."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class StorageError(DailyLogError):
    """A backend failure, tagged with the operation that failed."""

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.message = message
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        if self.cause is not None:
            return f"{self.operation}: {self.message} ({self.cause})"
        return f"{self.operation}: {self.message}"


class NotFoundError(DailyLogError):
    """A specific resource does not exist."""

    def __init__(self, resource: str, id: str):
        self.resource = resource
        self.id = id
        super().__init__(f"{resource} not found: {id}")
