"""Custom exceptions for the roadmap tracker."""


class TrackerError(Exception):
    """Base exception class for all tracker errors."""
    pass


class StoreError(TrackerError):
    """Raised when a persistence call fails."""
    pass


class StoreUnavailable(StoreError):
    """Raised when the store cannot be opened or read at all."""
    pass


class NotFound(StoreError):
    """Raised when a topic, resource, project or achievement id is unknown to the store."""
    pass
