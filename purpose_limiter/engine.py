"""
purpose_limiter.engine — Per-call minimization of a handler's response.

Call lifecycle:

    Invoking ──handler raises──▶ Propagating   (exception re-raised untouched)
        │
        ▼
    HandlerSucceeded ──not walkable──▶ UnsupportedResponseType
        │
        ▼
    ExtractingPolicy   AuthError → fail-closed default policy
        │
        ▼
    WalkingFields      resolve → transform → write back, per field
        │
        ▼
    Done               same response instance, mutated in place

A unary call logs one "Response minimized" line with the caller sub and the
per-disposition counts; a streamed call logs one line for the whole stream.

The engine keeps no per-call state. It may be shared by every worker thread
of a server as long as each response instance belongs to exactly one call.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from aws_lambda_powertools import Logger

from purpose_limiter.default_policy import DefaultPolicyStore
from purpose_limiter.exceptions import AuthError, UnsupportedResponseType
from purpose_limiter.fields import FieldWalker, ProtoFieldWalker
from purpose_limiter.models import FieldDisposition, FieldKind, Policy
from purpose_limiter.policy import PolicyExtractor
from purpose_limiter.resolver import resolve
from purpose_limiter.transforms import transform

logger = Logger(service="purpose-limiter")

R = TypeVar("R")


class MinimizationEngine:
    """
    Applies the caller's policy to every in-scope field of a response.

    Args:
        extractor:      Turns the inbound credential into Claims.
        walker:         Enumerates response fields; protobuf by default.
        default_policy: Called for the fail-closed policy when the credential
                        is missing or rejected.
        rng:            Random source for noising. SystemRandom by default,
                        which is safe to share between threads.
    """

    def __init__(
        self,
        *,
        extractor: PolicyExtractor | None = None,
        walker: FieldWalker | None = None,
        default_policy: Callable[[], Policy] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._extractor = extractor or PolicyExtractor()
        self._walker: FieldWalker = walker or ProtoFieldWalker()
        self._default_policy = default_policy or DefaultPolicyStore()
        self._rng = rng or random.SystemRandom()

    def handle(self, invoke_next: Callable[[], R], credential: str | None) -> R:
        """Invoke the next handler and minimize its response.

        Exceptions from invoke_next propagate unchanged; no field is examined.
        """
        response = invoke_next()
        return self.minimize(response, credential)

    def minimize(self, response: R, credential: str | None) -> R:
        self.ensure_supported(response)
        policy, subject = self._resolve_caller(credential)
        return self.apply(response, policy, subject=subject)

    def minimize_stream(self, responses: Iterable[R], credential: str | None) -> Iterator[R]:
        """Minimize each streamed response as it is produced.

        The policy is resolved once, when the first response arrives; an
        empty stream never touches the credential. One summary line is
        logged when the stream is exhausted.
        """
        counts: Counter[str] = Counter()
        messages = 0
        policy, subject = Policy(), None
        for response in responses:
            self.ensure_supported(response)
            if messages == 0:
                policy, subject = self._resolve_caller(credential)
            counts.update(self._rewrite(response, policy))
            messages += 1
            yield response

        if messages:
            self._log_minimized(counts, subject, messages=messages)

    def ensure_supported(self, response: Any) -> None:
        if not self._walker.supports(response):
            response_type = type(response).__name__
            logger.error("Unsupported response type", extra={"response_type": response_type})
            raise UnsupportedResponseType(response_type=response_type)

    def policy_for(self, credential: str | None) -> Policy:
        """Policy from the credential, or the default policy if it cannot be trusted."""
        return self._resolve_caller(credential)[0]

    def _resolve_caller(self, credential: str | None) -> tuple[Policy, str | None]:
        try:
            claims = self._extractor.extract(credential)
        except AuthError as e:
            logger.warning(
                "Credential rejected, applying default policy",
                extra={"reason": str(e.reason), "detail": e.detail},
            )
            return self._default_policy(), None

        logger.debug(
            "Credential accepted",
            extra={"sub": claims.subject, "iss": claims.issuer, "verified": claims.verified},
        )
        return claims.policy, claims.subject

    def apply(self, response: R, policy: Policy, *, subject: str | None = None) -> R:
        """Minimize a supported response in place under policy and return it."""
        self._log_minimized(self._rewrite(response, policy), subject)
        return response

    def _rewrite(self, response: Any, policy: Policy) -> Counter[str]:
        counts: Counter[str] = Counter()
        for field in self._walker.walk(response):
            if field.kind is FieldKind.OTHER:
                continue
            disposition = resolve(field.name, policy)
            counts[disposition] += 1
            if disposition is FieldDisposition.ALLOWED:
                continue
            field.set(transform(disposition, field.kind, field.get(), self._rng))
        return counts

    def _log_minimized(self, counts: Counter[str], subject: str | None, messages: int = 1) -> None:
        logger.info(
            "Response minimized",
            extra={"sub": subject, "messages": messages, "dispositions": dict(counts)},
        )
