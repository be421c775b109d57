"""gRPC server for the portfolio catalog."""

from __future__ import annotations

from concurrent import futures

import grpc
import structlog
from grpc_health.v1 import health, health_pb2, health_pb2_grpc
from grpc_reflection.v1alpha import reflection

from portfolio.observability.statsd import MetricSink
from portfolio.rpc.interceptors import LoggingInterceptor, StatsdInterceptor
from portfolio.rpc.pb import SERVICE_NAME
from portfolio.rpc.service import PortfolioService, add_portfolio_service_to_server

logger = structlog.get_logger(__name__)


class GRPCServer:
    """Thread-pool gRPC server; each in-flight call runs on its own worker thread.

    Besides the portfolio service it exposes ``grpc.health.v1.Health`` and
    server reflection.
    """

    def __init__(
        self,
        service: PortfolioService,
        sink: MetricSink,
        host: str = "0.0.0.0",
        port: int = 50051,
        max_workers: int = 10,
    ) -> None:
        self._service = service
        self._sink = sink
        self._host = host
        self._port = port
        self._max_workers = max_workers
        self._server: grpc.Server | None = None
        self._health = health.HealthServicer()
        self.bound_port: int | None = None

    def _set_serving_status(self, status) -> None:
        # "" is the overall server status.
        for name in ("", SERVICE_NAME):
            self._health.set(name, status)

    def start(self) -> int:
        """Bind and start serving. Returns the bound port (useful with port 0)."""

        logger.info("grpc_server_starting", host=self._host, port=self._port)

        self._server = grpc.server(
            futures.ThreadPoolExecutor(max_workers=self._max_workers),
            interceptors=(LoggingInterceptor(), StatsdInterceptor(self._sink)),
        )
        add_portfolio_service_to_server(self._service, self._server)
        health_pb2_grpc.add_HealthServicer_to_server(self._health, self._server)
        reflection.enable_server_reflection(
            (
                SERVICE_NAME,
                health_pb2.DESCRIPTOR.services_by_name["Health"].full_name,
                reflection.SERVICE_NAME,
            ),
            self._server,
        )

        self.bound_port = self._server.add_insecure_port(f"{self._host}:{self._port}")
        if self.bound_port == 0:
            raise RuntimeError(f"failed to bind gRPC server to {self._host}:{self._port}")

        self._server.start()
        self._set_serving_status(health_pb2.HealthCheckResponse.SERVING)
        logger.info("grpc_server_started", host=self._host, port=self.bound_port)
        return self.bound_port

    @property
    def health(self) -> health.HealthServicer:
        return self._health

    def stop(self, grace_period: float | None = 5.0) -> None:
        """Stop accepting calls and let in-flight ones finish within ``grace_period``."""

        if self._server is None:
            return

        logger.info("grpc_server_stopping", grace_period=grace_period)
        self._set_serving_status(health_pb2.HealthCheckResponse.NOT_SERVING)
        self._server.stop(grace_period).wait()
        self._server = None
        logger.info("grpc_server_stopped")
