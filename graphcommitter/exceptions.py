"""
Exception hierarchy for graph-committer.

Everything the committer raises inherits from CommitterError so that callers
(the CLI, the HTTP intake) can treat a failed batch uniformly. Conditions the
engine recovers from locally, such as a relationship endpoint missing under
MATCH semantics, are logged and never raised.
"""

from __future__ import annotations


class CommitterError(Exception):
    """Base exception for all committer errors."""


class ConfigurationError(CommitterError):
    """Invalid or incomplete configuration. Fatal, never retried."""


class UnsupportedOperationError(ConfigurationError):
    """A batch contained an operation that is neither an add nor a delete."""

    def __init__(self, operation: object):
        self.operation = operation
        super().__init__(f"Unsupported operation: {operation!r}")


class InvalidOperationError(CommitterError):
    """An add or delete operation that cannot be keyed (blank reference)."""


class ContentReadError(CommitterError):
    """The content stream of an add operation could not be read."""

    def __init__(self, reference: str, cause: BaseException):
        self.reference = reference
        super().__init__(f"Could not read content of {reference}: {cause}")


class RetriesExhaustedError(CommitterError):
    """A transient store failure persisted past the configured retry budget."""

    def __init__(self, reference: str, attempts: int, cause: BaseException):
        self.reference = reference
        self.attempts = attempts
        super().__init__(
            f"Giving up on {reference} after {attempts} attempt(s): "
            f"{type(cause).__name__}: {cause}"
        )
