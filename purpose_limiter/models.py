"""
purpose_limiter.models — Policy, claims and disposition vocabulary.

Policy and Claims are created once per call from the inbound credential and
discarded when the call ends. Nothing in this module is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

# ---------------------------------------------------------------------------
# Enums — constrained vocabulary
# ---------------------------------------------------------------------------


class FieldDisposition(StrEnum):
    ALLOWED = "allowed"
    GENERALIZED = "generalized"
    NOISED = "noised"
    REDUCED = "reduced"
    SUPPRESSED = "suppressed"


class FieldKind(StrEnum):
    INTEGER = "integer"
    STRING = "string"
    OTHER = "other"


class AuthFailure(StrEnum):
    MISSING = "missing"
    MALFORMED = "malformed"
    SIGNATURE = "signature"
    ISSUER = "issuer"
    AUDIENCE = "audience"
    EXPIRED = "expired"
    UNCONFIGURED = "unconfigured"


# Policy categories in the order they appear in the credential's policy claim.
POLICY_CATEGORIES: tuple[str, ...] = ("allowed", "generalized", "noised", "reduced")


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Policy:
    """Field names authorized per disposition for one caller.

    A name may be listed under several categories; the resolver picks the
    most information-preserving one. A name listed nowhere is suppressed.
    Policy() with every set empty is the fail-closed policy.
    """

    allowed: frozenset[str] = field(default_factory=frozenset)
    generalized: frozenset[str] = field(default_factory=frozenset)
    noised: frozenset[str] = field(default_factory=frozenset)
    reduced: frozenset[str] = field(default_factory=frozenset)

    def is_empty(self) -> bool:
        return not (self.allowed or self.generalized or self.noised or self.reduced)


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Claims:
    """Identity and policy assertions decoded from a credential.

    verified is False only when credential verification has been switched
    off in configuration; the extractor never returns unverified claims
    otherwise.
    """

    policy: Policy
    issuer: str | None = None
    subject: str | None = None
    expires_at: int | None = None  # Unix epoch seconds
    verified: bool = True
