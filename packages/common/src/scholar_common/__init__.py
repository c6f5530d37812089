"""Scholar KB Common - Shared utilities.

Version: 1.0.0

This package provides:
- Settings (pydantic-settings)
- Structured logging (structlog)
- Retry/backoff patterns (tenacity)
- OpenTelemetry instrumentation helpers
- Base error types
"""

from scholar_common.config import Settings, get_settings
from scholar_common.errors import ConfigurationError, ScholarKBError
from scholar_common.instrumentation import (
    get_tracer,
    init_telemetry,
    instrument_function,
)
from scholar_common.logging_config import (
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)
from scholar_common.retry import retry_on_exception

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    # Retry
    "retry_on_exception",
    # Instrumentation
    "init_telemetry",
    "get_tracer",
    "instrument_function",
    # Errors
    "ScholarKBError",
    "ConfigurationError",
]
