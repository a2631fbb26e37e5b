"""mbean-spine core -- errors, logging and settings shared by the cache.

Module Map
----------
  errors      Structured error hierarchy with categories
  logging     Structured logging (structlog)
  settings    PropertyCacheSettings (pydantic-settings)

``settings`` is not re-exported here so that importing the parser or cache
does not pull in pydantic.
"""

from mbeanspine.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MalformedObjectNameError,
    MBeanSpineError,
    categorize_error,
)
from mbeanspine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    # errors
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "MalformedObjectNameError",
    "MBeanSpineError",
    "categorize_error",
    # logging
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
