"""
purpose_limiter.interceptors.response_interceptor — gRPC RESPONSE interceptor.

On every RPC handled by the server:
  - reads the caller credential from the "authorization" metadata entry
    (key matched case-insensitively, first value wins)
  - runs the handler; handler failures reach the client untouched
  - minimizes the response before it is serialized: unary responses once,
    streamed responses message by message under a policy extracted once
  - aborts with INTERNAL when the handler returns something that is not a
    protobuf message, rather than sending it unminimized

Usage:

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=10),
        interceptors=[PurposeLimiterInterceptor()],
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

import grpc

from purpose_limiter.engine import MinimizationEngine
from purpose_limiter.exceptions import UnsupportedResponseType

AUTHORIZATION_KEY = "authorization"


def credential_from_metadata(metadata: Iterable[tuple[str, Any]] | None) -> str | None:
    """First authorization value in the call metadata, or None."""
    for key, value in metadata or ():
        if key.lower() == AUTHORIZATION_KEY:
            return value.decode() if isinstance(value, bytes) else str(value)
    return None


class PurposeLimiterInterceptor(grpc.ServerInterceptor):
    def __init__(self, engine: MinimizationEngine | None = None) -> None:
        self._engine = engine or MinimizationEngine()

    def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], grpc.RpcMethodHandler | None],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler | None:
        handler = continuation(handler_call_details)
        if handler is None:
            return None

        codecs = {
            "request_deserializer": handler.request_deserializer,
            "response_serializer": handler.response_serializer,
        }
        if handler.unary_unary:
            return grpc.unary_unary_rpc_method_handler(
                self._wrap_unary(handler.unary_unary), **codecs
            )
        if handler.stream_unary:
            return grpc.stream_unary_rpc_method_handler(
                self._wrap_unary(handler.stream_unary), **codecs
            )
        if handler.unary_stream:
            return grpc.unary_stream_rpc_method_handler(
                self._wrap_stream(handler.unary_stream), **codecs
            )
        if handler.stream_stream:
            return grpc.stream_stream_rpc_method_handler(
                self._wrap_stream(handler.stream_stream), **codecs
            )
        return handler

    def _wrap_unary(self, behavior: Callable[[Any, grpc.ServicerContext], Any]):
        engine = self._engine

        def wrapper(request: Any, context: grpc.ServicerContext) -> Any:
            credential = credential_from_metadata(context.invocation_metadata())
            try:
                return engine.handle(lambda: behavior(request, context), credential)
            except UnsupportedResponseType as e:
                context.abort(grpc.StatusCode.INTERNAL, str(e))

        return wrapper

    def _wrap_stream(self, behavior: Callable[[Any, grpc.ServicerContext], Iterable[Any]]):
        engine = self._engine

        def wrapper(request: Any, context: grpc.ServicerContext) -> Iterator[Any]:
            credential = credential_from_metadata(context.invocation_metadata())
            try:
                yield from engine.minimize_stream(behavior(request, context), credential)
            except UnsupportedResponseType as e:
                context.abort(grpc.StatusCode.INTERNAL, str(e))

        return wrapper
