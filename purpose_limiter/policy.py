"""
purpose_limiter.policy — Derive a Policy from the caller's JWT.

The credential's payload carries the policy under a "policy" claim:

    {
      "iss": "...", "sub": "...", "exp": 1767225600,
      "policy": {
        "allowed":     {"name": ""},
        "generalized": {"houseNumber": ""},
        "noised":      {},
        "reduced":     {"street": ""}
      }
    }

Only the keys of each category are meaningful. A JSON list of field names
is accepted in place of an object.

The embedded policy is trusted only after signature, issuer and expiry
checks pass. Every failure is raised as AuthError; the engine turns that
into the fail-closed default policy.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import jwt
from aws_lambda_powertools import Logger
from jwt import PyJWKClient

from purpose_limiter.config import JWKS_CACHE_SECONDS, LimiterSettings
from purpose_limiter.exceptions import AuthError
from purpose_limiter.models import POLICY_CATEGORIES, AuthFailure, Claims, Policy

logger = Logger(service="purpose-limiter")

_BEARER_PREFIX = "Bearer "


def parse_policy(raw: Any) -> Policy:
    """Build a Policy from the JSON shape of the "policy" claim.

    Raises ValueError when the claim or one of its categories has the wrong
    shape. A missing claim (None) is the empty policy.
    """
    if raw is None:
        return Policy()
    if not isinstance(raw, Mapping):
        raise ValueError(f"policy must be an object, got {type(raw).__name__}")

    sets: dict[str, frozenset[str]] = {}
    for category in POLICY_CATEGORIES:
        entries = raw.get(category)
        if entries is None:
            sets[category] = frozenset()
        elif isinstance(entries, (Mapping, list, tuple)):
            # Iterating a mapping yields its keys; values are not used.
            sets[category] = frozenset(str(name) for name in entries)
        else:
            raise ValueError(
                f"policy.{category} must be an object or a list, got {type(entries).__name__}"
            )
    return Policy(**sets)


def strip_bearer(credential: str) -> str:
    credential = credential.strip()
    if credential.startswith(_BEARER_PREFIX):
        return credential[len(_BEARER_PREFIX) :].strip()
    return credential


class PolicyExtractor:
    """
    Parses and verifies a credential into Claims.

    Verification key resolution, in order:
      1. settings.jwks_url — signing key fetched through a cached PyJWKClient.
      2. settings.shared_secret — HMAC secret for HS* algorithms.
    With verification enabled and neither configured, every credential is
    rejected as unconfigured.
    """

    def __init__(
        self,
        settings: LimiterSettings | None = None,
        *,
        jwk_client: PyJWKClient | None = None,
    ) -> None:
        self._settings = settings or LimiterSettings.from_env()
        self._jwk_client = jwk_client

    def _get_jwk_client(self) -> PyJWKClient | None:
        """Lazy initialization of PyJWKClient."""
        if self._jwk_client is None and self._settings.jwks_url:
            self._jwk_client = PyJWKClient(
                self._settings.jwks_url, cache_jwk_set=True, lifespan=JWKS_CACHE_SECONDS
            )
        return self._jwk_client

    def _signing_key(self, token: str) -> Any:
        jwk_client = self._get_jwk_client()
        if jwk_client is not None:
            return jwk_client.get_signing_key_from_jwt(token).key
        if self._settings.shared_secret:
            return self._settings.shared_secret
        raise AuthError(AuthFailure.UNCONFIGURED, "no JWKS URL or shared secret configured")

    def _decode(self, token: str) -> dict[str, Any]:
        if not self._settings.verify_credentials:
            logger.warning("Credential verification disabled; trusting unverified policy")
            return jwt.decode(token, options={"verify_signature": False})

        settings = self._settings
        return jwt.decode(
            token,
            self._signing_key(token),
            algorithms=list(settings.algorithms),
            issuer=settings.issuer,
            audience=settings.audience,
            leeway=settings.leeway_seconds,
            options={"require": ["exp"]},
        )

    def extract(self, credential: str | None) -> Claims:
        """Decode the credential into Claims. Raises AuthError on any failure."""
        if not credential or not credential.strip():
            raise AuthError(AuthFailure.MISSING)

        token = strip_bearer(credential)
        try:
            payload = self._decode(token)
        except jwt.ExpiredSignatureError as e:
            raise AuthError(AuthFailure.EXPIRED) from e
        except jwt.InvalidIssuerError as e:
            raise AuthError(AuthFailure.ISSUER) from e
        except jwt.InvalidAudienceError as e:
            raise AuthError(AuthFailure.AUDIENCE) from e
        except jwt.MissingRequiredClaimError as e:
            reason = {"iss": AuthFailure.ISSUER, "aud": AuthFailure.AUDIENCE}.get(
                e.claim, AuthFailure.MALFORMED
            )
            raise AuthError(reason, f"missing {e.claim!r} claim") from e
        except (jwt.InvalidSignatureError, jwt.InvalidKeyError, jwt.InvalidAlgorithmError) as e:
            raise AuthError(AuthFailure.SIGNATURE, str(e)) from e
        except jwt.PyJWKClientError as e:
            raise AuthError(AuthFailure.SIGNATURE, f"signing key unavailable: {e}") from e
        except jwt.PyJWTError as e:
            raise AuthError(AuthFailure.MALFORMED, str(e)) from e

        try:
            policy = parse_policy(payload.get("policy"))
        except ValueError as e:
            raise AuthError(AuthFailure.MALFORMED, str(e)) from e

        exp = payload.get("exp")
        return Claims(
            policy=policy,
            issuer=payload.get("iss"),
            subject=payload.get("sub"),
            expires_at=int(exp) if isinstance(exp, (int, float)) else None,
            verified=self._settings.verify_credentials,
        )
