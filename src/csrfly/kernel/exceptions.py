"""Unified exception hierarchy for csrfly.

All library exceptions inherit from CsrflyException so that hosts can catch
the whole family in one place, or pick the specific subclass they map to an
HTTP status.

Categories:
- ConfigurationException: invalid settings, raised at startup only
- SecurityException: request-time rejections (mapped to 403 by hosts)
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class CsrflyException(Exception):
    """Base exception for all csrfly errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_INVALID").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(CsrflyException, ValueError):
    """Settings are out of range or otherwise unusable."""


class CsrfConfigurationError(ConfigurationException):
    """CSRF settings failed validation when the config object was built."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="CSRF_CONFIG", context=context)


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(CsrflyException):
    """Request rejected for security reasons."""


class ForbiddenException(SecurityException):
    """Caller is not allowed to perform the operation."""


class CsrfError(ForbiddenException):
    """The request's CSRF token is missing, malformed, or does not match the secret."""

    def __init__(self, message: str = "csrf validation error", context: dict | None = None) -> None:
        super().__init__(message, code="CSRF_INVALID", context=context)
