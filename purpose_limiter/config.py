"""
purpose_limiter.config — Environment-driven settings.

Settings are read once at interceptor construction. Every variable is
optional; with nothing set, credentials are still verified and, lacking a
verification key, every caller falls back to the fail-closed policy.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REGION = "eu-west-2"
DEFAULT_ALGORITHMS: tuple[str, ...] = ("RS256",)
# JWKS cache lifespan in seconds
JWKS_CACHE_SECONDS = 300


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str) -> str | None:
    raw = (os.environ.get(name) or "").strip()
    return raw or None


@dataclass(frozen=True)
class LimiterSettings:
    verify_credentials: bool = True
    issuer: str | None = None
    audience: str | None = None
    jwks_url: str | None = None
    shared_secret: str | None = None
    algorithms: tuple[str, ...] = DEFAULT_ALGORITHMS
    leeway_seconds: int = 0
    default_policy_param: str | None = None
    default_policy_ttl_seconds: int = 60
    region: str = DEFAULT_REGION

    @classmethod
    def from_env(cls) -> LimiterSettings:
        algorithms = tuple(
            a.strip() for a in (os.environ.get("PURPOSE_LIMITER_ALGORITHMS") or "").split(",")
            if a.strip()
        )
        return cls(
            verify_credentials=_env_bool("PURPOSE_LIMITER_VERIFY_CREDENTIALS", True),
            issuer=_env_str("PURPOSE_LIMITER_ISSUER"),
            audience=_env_str("PURPOSE_LIMITER_AUDIENCE"),
            jwks_url=_env_str("PURPOSE_LIMITER_JWKS_URL"),
            shared_secret=_env_str("PURPOSE_LIMITER_SHARED_SECRET"),
            algorithms=algorithms or DEFAULT_ALGORITHMS,
            leeway_seconds=_env_int("PURPOSE_LIMITER_LEEWAY_SECONDS", 0),
            default_policy_param=_env_str("PURPOSE_LIMITER_DEFAULT_POLICY_PARAM"),
            default_policy_ttl_seconds=_env_int("PURPOSE_LIMITER_DEFAULT_POLICY_TTL_SECONDS", 60),
            region=_env_str("AWS_REGION") or DEFAULT_REGION,
        )
