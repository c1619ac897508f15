"""
purpose_limiter.exceptions — Errors raised by the minimization engine.

Only UnsupportedResponseType ends a call. AuthError is caught by the engine
and degrades the caller to the fail-closed default policy.
"""

from __future__ import annotations

from purpose_limiter.models import AuthFailure


class PurposeLimiterError(Exception):
    """Base class for all purpose-limiter errors."""


class AuthError(PurposeLimiterError):
    """
    Raised when a credential cannot be trusted.

    Attributes:
        reason: Which check failed (missing, malformed, signature, issuer,
                expired, unconfigured).
        detail: Human-readable description, safe to log (never the token).
    """

    def __init__(self, reason: AuthFailure, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"credential rejected: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnsupportedResponseType(PurposeLimiterError):
    """Raised when a handler returns something the field walker cannot enumerate."""

    def __init__(self, *, response_type: str) -> None:
        self.response_type = response_type
        super().__init__(f"response of type {response_type!r} is not a structured message")
