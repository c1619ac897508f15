"""
purpose_limiter.resolver — Pick the single disposition governing a field.

First match wins:
    allowed > generalized > noised > reduced > suppressed (default)

A field listed under several categories gets the most information-preserving
one; a field listed nowhere is suppressed.
"""

from __future__ import annotations

from purpose_limiter.models import FieldDisposition, Policy


def resolve(field_name: str, policy: Policy) -> FieldDisposition:
    if field_name in policy.allowed:
        return FieldDisposition.ALLOWED
    if field_name in policy.generalized:
        return FieldDisposition.GENERALIZED
    if field_name in policy.noised:
        return FieldDisposition.NOISED
    if field_name in policy.reduced:
        return FieldDisposition.REDUCED
    return FieldDisposition.SUPPRESSED
