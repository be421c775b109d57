from __future__ import annotations

import threading

from portfolio.config import get_settings
from portfolio.rpc.client import PortfolioClient

_client: PortfolioClient | None = None
_client_lock = threading.Lock()


def set_portfolio_client(client: PortfolioClient | None) -> None:
    global _client
    with _client_lock:
        _client = client


def get_portfolio_client() -> PortfolioClient:
    # Sync routes run on the threadpool, so first use can race.
    global _client
    with _client_lock:
        if _client is None:
            _client = PortfolioClient(get_settings().grpc_target)
        return _client
