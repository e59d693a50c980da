"""Custom exceptions for the topic tree engine.

Every failure surfaced by the engine carries an ``ErrorKind`` so callers can
discriminate on the kind without matching class names.
"""

from enum import Enum


class ErrorKind(Enum):
    """Failure kinds reported by mutation operations."""

    NOT_FOUND = "not_found"
    LIMIT_EXCEEDED = "limit_exceeded"
    CYCLIC_MOVE = "cyclic_move"
    INVALID_LEVEL = "invalid_level"
    CONFLICT = "conflict"
    STORAGE_FAILURE = "storage_failure"


class TopicTreeError(Exception):
    """Base exception for all topic tree errors."""

    kind: ErrorKind | None = None

    def __init__(self, message: str, details: dict | None = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details


class ResourceNotFound(TopicTreeError):
    """Exception raised when a tree or item does not exist."""

    kind = ErrorKind.NOT_FOUND


class LimitExceeded(TopicTreeError):
    """Exception raised when a parent would hold more children than allowed.

    Attributes:
        parent_id: Parent whose child group is full (None for roots)
        level: Level of the child group
        count: Number of children found (or that would result)
        limit: Configured fanout limit
    """

    kind = ErrorKind.LIMIT_EXCEEDED

    parent_id: str | None
    level: int
    count: int
    limit: int

    def __init__(self, message: str, parent_id: str | None, level: int, count: int, limit: int):
        super().__init__(
            message,
            details={
                "parent_id": parent_id,
                "level": level,
                "count": count,
                "limit": limit,
            },
        )
        self.parent_id = parent_id
        self.level = level
        self.count = count
        self.limit = limit


class CyclicMove(TopicTreeError):
    """Exception raised when an item would be moved under itself or a descendant."""

    kind = ErrorKind.CYCLIC_MOVE


class InvalidLevel(TopicTreeError):
    """Exception raised when an operation is applied at the wrong level."""

    kind = ErrorKind.INVALID_LEVEL


class ConflictError(TopicTreeError):
    """Exception raised when a relationship endpoint is already linked."""

    kind = ErrorKind.CONFLICT


class StorageFailure(TopicTreeError):
    """Exception raised when the store fails to read, write or commit.

    Raised for aborted atomic scopes as well; the scope has been rolled back
    by the time the caller sees this.
    """

    kind = ErrorKind.STORAGE_FAILURE
