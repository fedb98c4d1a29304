"""Queue state errors."""


class StateError(Exception):
    """Base exception for queue repository operations."""


class QueueError(StateError):
    """Raised when a run queue directory cannot be created or opened."""
