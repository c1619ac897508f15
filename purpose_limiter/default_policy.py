"""
purpose_limiter.default_policy — Fail-closed fallback policy.

Used whenever a caller's credential is missing or cannot be verified.
Without an SSM parameter configured the fallback is the empty policy, so
every in-scope field is suppressed. Operators may publish a less strict
fallback (for example, allowing a display name) as JSON in SSM:

    /platform/gateway/purpose-limiter/default-policy
    {"allowed": ["displayName"], "reduced": ["postcode"]}

The parameter is cached for default_policy_ttl_seconds. A failed refresh
keeps serving the last good policy and is not retried for at least
FAILED_FETCH_BACKOFF_SECONDS; it never raises into a call. The SSM call is
made outside the lock, by one caller at a time.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any

import boto3
from aws_lambda_powertools import Logger

from purpose_limiter.config import LimiterSettings
from purpose_limiter.models import Policy
from purpose_limiter.policy import parse_policy

logger = Logger(service="purpose-limiter")

FAILED_FETCH_BACKOFF_SECONDS = 10


class DefaultPolicyStore:
    """Callable returning the current fallback Policy."""

    def __init__(self, settings: LimiterSettings | None = None, *, ssm_client: Any = None) -> None:
        self._settings = settings or LimiterSettings.from_env()
        self._ssm: Any = ssm_client
        self._lock = threading.Lock()
        self._cached: Policy | None = None
        self._expiry: float = 0

    def _get_ssm(self) -> Any:
        if self._ssm is None:
            self._ssm = boto3.client("ssm", region_name=self._settings.region)
        return self._ssm

    def _fetch(self, name: str) -> Policy:
        response = self._get_ssm().get_parameter(Name=name)
        return parse_policy(json.loads(response["Parameter"]["Value"]))

    def __call__(self) -> Policy:
        name = self._settings.default_policy_param
        if not name:
            return Policy()

        ttl = self._settings.default_policy_ttl_seconds
        now = time.time()
        with self._lock:
            if now < self._expiry:
                return self._cached or Policy()
            # Claim the refresh: concurrent callers serve the current value
            # until it completes, and a failure is not retried before the backoff.
            self._expiry = now + max(ttl, FAILED_FETCH_BACKOFF_SECONDS)
            current = self._cached

        try:
            policy = self._fetch(name)
        except Exception:
            logger.exception("Failed to load default policy from SSM", extra={"parameter": name})
            return current or Policy()

        with self._lock:
            self._cached = policy
            self._expiry = now + ttl
        logger.info("Loaded default policy", extra={"parameter": name, "empty": policy.is_empty()})
        return policy
