"""
purpose_limiter.interceptors — gRPC server interceptors.

RESPONSE interceptor: minimizes every response under the caller's purpose policy.
"""

from purpose_limiter.interceptors.response_interceptor import (
    PurposeLimiterInterceptor,
    credential_from_metadata,
)

__all__ = ["PurposeLimiterInterceptor", "credential_from_metadata"]
