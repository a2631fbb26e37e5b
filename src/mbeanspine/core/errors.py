"""
Structured error types for mbean-spine.

The parser and the property cache never raise for well-formed identity
objects: malformed key property lists degrade to partial maps and unknown
evictions are ignored. Errors only surface at the edges, when an
``ObjectName`` is built from a string that has no domain separator, or
when configuration is invalid.

Manifesto:
    - **One base class:** Every mbean-spine error extends MBeanSpineError
    - **Categorised:** Each error carries an ErrorCategory for routing
    - **Rich context:** Errors carry the object name and domain involved
    - **Error chaining:** Original exceptions are preserved as ``cause``

Architecture:
    ::

        ┌───────────────────────────────────────────────────────┐
        │                    MBeanSpineError                     │
        │          (category, context, cause)                    │
        ├───────────────────────────────────────────────────────┤
        │                                                        │
        │  MalformedObjectNameError       ConfigError            │
        │  (PARSE)                        (CONFIG)               │
        │                                     │                  │
        │                                 InvalidConfigError     │
        └───────────────────────────────────────────────────────┘

Examples:
    >>> error = MalformedObjectNameError("missing domain separator")
    >>> error.category
    <ErrorCategory.PARSE: 'PARSE'>
    >>> error.with_context(object_name="no-colon-here").context.object_name
    'no-colon-here'

Tags:
    errors, exception-hierarchy, error-context, mbean-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        PARSE: An identity string could not be split into domain and properties
        VALIDATION: A value failed a type or range check
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    PARSE = "PARSE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error for logging.

    Attributes:
        object_name: The identity string being processed, if any
        domain: The domain portion of that identity, if known
        metadata: Additional key-value pairs
    """

    object_name: str | None = None
    domain: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("object_name", "domain"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MBeanSpineError(Exception):
    """
    Base exception for all mbean-spine errors.

    Subclasses set ``default_category`` so callers can route on
    ``error.category`` without inspecting the concrete type.

    Examples:
        >>> error = MBeanSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'MBeanSpineError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MBeanSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MalformedObjectNameError("bad name").with_context(
                object_name=name,
                source="discovery",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# IDENTITY ERRORS
# =============================================================================


class MalformedObjectNameError(MBeanSpineError):
    """An object name string could not be split into domain and key properties."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(MBeanSpineError):
    """Configuration error. Never recoverable without a settings change."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """A configuration value is present but not acceptable."""

    def __init__(self, key: str, value: Any, reason: str, **kwargs: Any):
        super().__init__(f"Invalid value for {key!r}: {value!r} ({reason})", **kwargs)
        self.key = key
        self.value = value


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, MBeanSpineError):
        return error.category
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.VALIDATION
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.INTERNAL
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MBeanSpineError",
    "MalformedObjectNameError",
    "ConfigError",
    "InvalidConfigError",
    "categorize_error",
]
