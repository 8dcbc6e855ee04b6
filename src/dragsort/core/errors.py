"""
Structured error types for the dragsort engine.

Provides a small hierarchy of typed errors with metadata for categorization
and structured logging. Every failure a caller of the ordered collection can
observe is a ``DragSortError`` subclass, so callers can catch the base class
and still inspect ``category`` and ``context`` for reporting.

Manifesto:
    - **Typed Error Hierarchy:** One type per caller-visible failure
    - **Unchanged State:** Raising never leaves the collection half-mutated
    - **Rich Context:** Errors carry the id/position that caused them
    - **Builtin Compatibility:** Range errors are ``IndexError``, lookups are
      ``LookupError``, so generic handlers keep working

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       DragSortError                          │
        │              (category, context, cause)                      │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError              ItemNotFoundError              │
        │  (VALIDATION)                 (NOT_FOUND, LookupError)       │
        │       │                                                      │
        │  PositionOutOfRangeError      ConfigError                    │
        │  (IndexError)                 (CONFIG)                       │
        │  DuplicateIdError                  │                         │
        │                               InvalidConfigError             │
        │                                                              │
        │  RenumberNotificationError  (NOTIFICATION, logged only)      │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DuplicateIdError("Item with this id already exists")
    >>> error.with_context(item_id="a").to_dict()["context"]
    {'item_id': 'a'}

    >>> try:
    ...     raise PositionOutOfRangeError("Position out of range")
    ... except IndexError:
    ...     pass

Guardrails:
    ❌ DON'T: Raise for key precision overflow
    ✅ DO: Renumber internally; overflow is never caller-visible

    ❌ DON'T: Propagate renumber sink failures to insert/move callers
    ✅ DO: Wrap them in RenumberNotificationError and log

Tags:
    error-handling, exception-hierarchy, error-context, dragsort

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    VALIDATION = "VALIDATION"        # Bad position, duplicate id
    NOT_FOUND = "NOT_FOUND"          # Unknown item id
    CONFIG = "CONFIG"                # Invalid step/precision
    NOTIFICATION = "NOTIFICATION"    # Renumber sink failed
    INTERNAL = "INTERNAL"            # Bugs, unexpected state


class DragSortError(Exception):
    """
    Base exception for all dragsort errors.

    Subclasses set ``default_category``. Context is a flat dict of small
    values (ids, positions, lengths) merged into log events via ``to_dict()``.

    Examples:
        >>> error = DragSortError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(position=3).context
        {'position': 3}
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

    def with_context(self, **kwargs: Any) -> DragSortError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DuplicateIdError("Item with this id already exists").with_context(
                item_id=item_id
            )
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

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DragSortError):
    """Caller passed arguments the collection cannot accept."""

    default_category = ErrorCategory.VALIDATION


class PositionOutOfRangeError(ValidationError, IndexError):
    """Requested position lies outside the valid bounds for insert/move."""


class DuplicateIdError(ValidationError):
    """An item with the same id already exists in the collection."""


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class ItemNotFoundError(DragSortError, LookupError):
    """No item with the requested id exists."""

    default_category = ErrorCategory.NOT_FOUND


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DragSortError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is out of its allowed domain."""

    def __init__(self, message: str, *, key: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        if key:
            self.context["config_key"] = key


# =============================================================================
# NOTIFICATION ERRORS
# =============================================================================


class RenumberNotificationError(DragSortError):
    """
    The renumber sink raised or its awaitable was rejected.

    Never raised to insert/move callers: it is logged and attached to the
    ``RenumberResult`` so the in-memory state stays authoritative.
    """

    default_category = ErrorCategory.NOTIFICATION


def categorize_error(error: Exception) -> ErrorCategory:
    """Get error category, defaulting to INTERNAL for foreign exceptions."""
    if isinstance(error, DragSortError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "DragSortError",
    "ValidationError",
    "PositionOutOfRangeError",
    "DuplicateIdError",
    "ItemNotFoundError",
    "ConfigError",
    "InvalidConfigError",
    "RenumberNotificationError",
    "categorize_error",
]
