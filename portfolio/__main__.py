from __future__ import annotations

import argparse
import logging

import grpc
import structlog
import uvicorn
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from portfolio.api.dependencies import set_portfolio_client
from portfolio.config import Settings, get_settings
from portfolio.container import build_container
from portfolio.errors import ConfigError
from portfolio.main import create_app
from portfolio.observability import configure_logging
from portfolio.rpc.client import PortfolioClient
from portfolio.rpc.server import GRPCServer

logger = structlog.get_logger("portfolio")

_ROUTES = ("skills", "experiences", "educations")


def serve(settings: Settings) -> None:
    """Run the RPC server and the HTTP gateway until SIGINT/SIGTERM."""

    container = build_container(settings)
    grpc_server = GRPCServer(
        container.service,
        container.sink,
        host=settings.grpc_host,
        port=settings.grpc_port,
    )
    client: PortfolioClient | None = None
    try:
        grpc_server.start()

        client = PortfolioClient(settings.grpc_target)
        client.wait_ready(timeout=settings.shutdown_grace_seconds)
        set_portfolio_client(client)

        config = uvicorn.Config(
            create_app(settings.allowed_origin),
            host=settings.http_host,
            port=settings.http_port,
            log_config=None,
            timeout_graceful_shutdown=int(settings.shutdown_grace_seconds),
        )
        logger.info(
            "http_gateway_starting",
            port=settings.http_port,
            endpoints=[f"GET /v1/{name}" for name in _ROUTES] + [f"GET /v1/{name}/{{id}}" for name in _ROUTES],
        )
        # uvicorn owns the signal handlers; run() returns once it has drained.
        uvicorn.Server(config).run()
        logger.info("shutdown_signal_received")
    finally:
        set_portfolio_client(None)
        if client is not None:
            client.close()
        grpc_server.stop(settings.shutdown_grace_seconds)
        container.close()
        logger.info("servers_stopped")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Read-only portfolio catalog over gRPC with an HTTP gateway")
    parser.add_argument("--grpc-port", type=int, default=None, help="Override GRPC_PORT")
    parser.add_argument("--http-port", type=int, default=None, help="Override HTTP_PORT")
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        configure_logging(settings.log_level)
    except (ValidationError, ConfigError) as exc:
        configure_logging(logging.INFO)
        logger.error("invalid_configuration", error=str(exc))
        return 1

    overrides = {}
    if args.grpc_port is not None:
        overrides["grpc_port"] = args.grpc_port
    if args.http_port is not None:
        overrides["http_port"] = args.http_port
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        serve(settings)
    except (ConfigError, SQLAlchemyError, OSError, RuntimeError, grpc.FutureTimeoutError) as exc:
        logger.error("startup_failed", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
