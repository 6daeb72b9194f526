"""
Structured error types for serverview.

Every failure the listing core can describe is a ``ServerViewError`` carrying
a category, a free-form context mapping and an optional chained cause. Most
of these errors never reach a caller: the query compiler, the sort-order
loader and the persistence step catch them and recover locally, so a
partially unparseable query or a corrupt preference file still yields a
usable listing.

Architecture:
    ::

        ServerViewError (category, context, cause)
        ├── QueryError             (QUERY)
        │   └── InvalidTermError   malformed regex in a search term
        ├── ConfigError            (CONFIG)
        │   └── InvalidSortOrderError
        ├── RecordError            (RECORD)
        └── StorageError           (STORAGE)
            └── PreferenceStoreError

Examples:
    >>> err = InvalidTermError("bad pattern").with_context(term="/[a/")
    >>> err.category
    <ErrorCategory.QUERY: 'QUERY'>
    >>> err.to_dict()["context"]
    {'term': '/[a/'}

Tags:
    error-handling, exception-hierarchy, error-context, serverview
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    QUERY = "QUERY"
    CONFIG = "CONFIG"
    RECORD = "RECORD"
    STORAGE = "STORAGE"
    INTERNAL = "INTERNAL"


class ServerViewError(Exception):
    """
    Base exception for all serverview errors.

    Subclasses set ``default_category``; callers may override it per
    instance. ``context`` holds structured metadata for logging and
    ``cause`` is chained onto ``__cause__`` so tracebacks keep the original
    exception.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ServerViewError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RecordError("Missing address").with_context(payload=payload)
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        if self.context:
            result["context"] = dict(self.context)

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# QUERY ERRORS
# =============================================================================


class QueryError(ServerViewError):
    """Search query could not be compiled."""

    default_category = ErrorCategory.QUERY


class InvalidTermError(QueryError):
    """A single search term compiled to an invalid regular expression."""

    def __init__(self, term: str, pattern: str, cause: Exception | None = None):
        super().__init__(
            f"Invalid search term {term!r}",
            context={"term": term, "pattern": pattern},
            cause=cause,
        )
        self.term = term
        self.pattern = pattern


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(ServerViewError):
    """Invalid listing configuration."""

    default_category = ErrorCategory.CONFIG


class InvalidSortOrderError(ConfigError):
    """Sort order value is not a ``[key, "+"|"-"]`` pair."""

    def __init__(self, value: Any, message: str | None = None, cause: Exception | None = None):
        super().__init__(
            message or f"Invalid sort order: {value!r}",
            context={"value": value},
            cause=cause,
        )
        self.value = value


# =============================================================================
# RECORD / STORAGE ERRORS
# =============================================================================


class RecordError(ServerViewError):
    """Record payload cannot be turned into a server record."""

    default_category = ErrorCategory.RECORD


class StorageError(ServerViewError):
    """Durable storage error (disk, permissions, etc.)."""

    default_category = ErrorCategory.STORAGE


class PreferenceStoreError(StorageError):
    """Preference store could not be read or written."""

    pass


__all__ = [
    "ErrorCategory",
    "ServerViewError",
    "QueryError",
    "InvalidTermError",
    "ConfigError",
    "InvalidSortOrderError",
    "RecordError",
    "StorageError",
    "PreferenceStoreError",
]
