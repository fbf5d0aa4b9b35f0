"""
Domain-specific exceptions for modelrepo.

Errors raised by SQLAlchemy itself, and AttributeErrors from calls forwarded
to the wrapped model, are not translated and propagate unchanged.
"""

from typing import Any


class ModelRepoError(Exception):
    """Base exception for all modelrepo errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ModelRepoError):
    """
    Raised when arguments to a repository or builder are invalid.

    Examples:
    - Page number or page size below 1
    - Composite primary key given a scalar id
    - Unknown operation prefix or scope passed to an explicit dispatch
    """

    pass


class NotFoundError(ModelRepoError):
    """
    Raised when a query that must return a record returns none.

    Examples:
    - first_or_fail() on an empty result
    - find_or_fail() with an id that does not exist
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        model: str | None = None,
    ):
        super().__init__(message, details)
        self.model = model
