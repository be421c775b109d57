from __future__ import annotations

import grpc
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio.api.errors import rpc_error_handler
from portfolio.api.portfolio import router as portfolio_router
from portfolio.observability.middleware import RequestContextMiddleware


def create_app(allowed_origin: str = "*") -> FastAPI:
    """HTTP/REST gateway in front of the portfolio RPC service."""

    app = FastAPI(title="Portfolio gRPC Gateway", version="0.1.0")
    app.include_router(portfolio_router)
    app.add_exception_handler(grpc.RpcError, rpc_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[allowed_origin],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    # Added last so it wraps CORS and sees every response, preflights included.
    app.add_middleware(RequestContextMiddleware)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
