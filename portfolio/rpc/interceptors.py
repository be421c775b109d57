from __future__ import annotations

from collections.abc import Callable
from time import perf_counter
from typing import Any

import grpc
import structlog

from portfolio.observability.statsd import MetricSink

logger = structlog.get_logger("rpc")

Behavior = Callable[[Any, grpc.ServicerContext], Any]


def parse_method_name(full_method: str) -> tuple[str, str]:
    """Split ``/pkg.Service/Method`` into ``("Service", "Method")``."""

    parts = full_method.lstrip("/").split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return "unknown", "unknown"
    return parts[0].rsplit(".", 1)[-1], parts[1]


def call_status(context: grpc.ServicerContext) -> tuple[grpc.StatusCode, str]:
    """Status a failed handler left on its context (UNKNOWN when it never aborted)."""

    code = context.code() or grpc.StatusCode.UNKNOWN
    details = context.details() or ""
    if isinstance(details, bytes):
        details = details.decode("utf-8", errors="replace")
    return code, details


class _UnaryInterceptor(grpc.ServerInterceptor):
    """Base for interceptors that wrap unary-unary handlers."""

    def around(self, method: str, behavior: Behavior, request: Any, context: grpc.ServicerContext) -> Any:
        raise NotImplementedError

    def intercept_service(self, continuation, handler_call_details):
        handler = continuation(handler_call_details)
        if handler is None or handler.unary_unary is None:
            return handler

        method = handler_call_details.method
        behavior = handler.unary_unary

        def wrapped(request: Any, context: grpc.ServicerContext) -> Any:
            return self.around(method, behavior, request, context)

        return grpc.unary_unary_rpc_method_handler(
            wrapped,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )


class LoggingInterceptor(_UnaryInterceptor):
    """One structured log line per RPC. Not-found outcomes are not failures."""

    def around(self, method: str, behavior: Behavior, request: Any, context: grpc.ServicerContext) -> Any:
        log = logger.bind(rpc_method=method)
        log.debug("rpc_request")
        start = perf_counter()
        try:
            response = behavior(request, context)
        except Exception:
            code, details = call_status(context)
            elapsed_ms = round((perf_counter() - start) * 1000.0, 2)
            if code is grpc.StatusCode.NOT_FOUND:
                log.info("rpc_request", code=code.name, details=details, elapsed_ms=elapsed_ms)
            else:
                log.error("rpc_request_failed", code=code.name, details=details, elapsed_ms=elapsed_ms)
            raise

        log.info("rpc_request", code=grpc.StatusCode.OK.name, elapsed_ms=round((perf_counter() - start) * 1000.0, 2))
        return response


class StatsdInterceptor(_UnaryInterceptor):
    """Tracks every RPC as ``<Service>.<Method>`` on the metric sink."""

    def __init__(self, sink: MetricSink) -> None:
        self._sink = sink

    def around(self, method: str, behavior: Behavior, request: Any, context: grpc.ServicerContext) -> Any:
        service_name, method_name = parse_method_name(method)
        tracker = self._sink.start(service_name, method_name)
        try:
            response = behavior(request, context)
        except Exception:
            code, details = call_status(context)
            tracker.failed_with_error(f"{code.name.lower()}: {details}")
            raise

        tracker.succeeded()
        return response
