"""Custom error types for the scholar-kb system.

All errors follow the "fail fast" principle with explicit messages.
"""


class ScholarKBError(Exception):
    """Base exception for all scholar-kb errors."""

    pass


class ConfigurationError(ScholarKBError):
    """Invalid or inconsistent settings."""

    pass
