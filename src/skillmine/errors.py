"""Exception types raised by skillmine."""

from typing import Optional


class SkillmineError(Exception):
    """Base class for all skillmine errors."""


class RetrievalError(SkillmineError):
    """A requested traversal could not be completed.

    Raised for unresolvable branches, unreadable commit logs, failed tree
    diffs, repository open/close failures and missing entry-point arguments.
    The underlying exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, context: str, cause: Optional[BaseException] = None) -> None:
        """Initialize the error.

        Args:
            context: Human-readable description of the failed operation
            cause: Original exception, kept for callers that do not use ``__cause__``
        """
        super().__init__(context)
        self.context = context
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.context
        return f"{self.context}: {self.cause}"


class ContentDecodeError(SkillmineError, ValueError):
    """File content could not be decoded as text."""
