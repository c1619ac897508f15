"""
purpose_limiter — Purpose-limitation response minimization for gRPC servers.

Before a response leaves the server, every field the caller's credential does
not explicitly allow is generalized, noised, reduced or suppressed according
to the policy carried in that credential.

    from purpose_limiter.interceptors import PurposeLimiterInterceptor

    server = grpc.server(executor, interceptors=[PurposeLimiterInterceptor()])
"""

from purpose_limiter.engine import MinimizationEngine
from purpose_limiter.exceptions import AuthError, PurposeLimiterError, UnsupportedResponseType
from purpose_limiter.models import AuthFailure, Claims, FieldDisposition, FieldKind, Policy
from purpose_limiter.policy import PolicyExtractor

__all__ = [
    "AuthError",
    "AuthFailure",
    "Claims",
    "FieldDisposition",
    "FieldKind",
    "MinimizationEngine",
    "Policy",
    "PolicyExtractor",
    "PurposeLimiterError",
    "UnsupportedResponseType",
]
