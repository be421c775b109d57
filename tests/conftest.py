from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from datetime import date, datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Engine

from portfolio.api.dependencies import set_portfolio_client
from portfolio.config import get_settings
from portfolio.container import Container, build_container
from portfolio.db import models
from portfolio.db.session import create_db_engine, get_session_factory
from portfolio.main import create_app
from portfolio.rpc.client import PortfolioClient
from portfolio.rpc.server import GRPCServer

CREATED = datetime(2024, 1, 2, 3, 4, 5)


class RecordingTracker:
    def __init__(self, subject: str, operation: str) -> None:
        self.subject = subject
        self.operation = operation
        self.calls: list[str] = []
        self.errors: list[object] = []

    def succeeded(self) -> None:
        self.calls.append("succeeded")

    def failed(self) -> None:
        self.calls.append("failed")

    def failed_with_error(self, error: object) -> None:
        self.calls.append("failed_with_error")
        self.errors.append(error)

    def finished(self) -> None:
        self.calls.append("finished")


class RecordingSink:
    """Metric sink double: keeps every tracker and raw metric in memory."""

    def __init__(self) -> None:
        self.trackers: list[RecordingTracker] = []
        self.counters: list[tuple[str, int, tuple[str, ...]]] = []
        self.timings: list[tuple[str, float, tuple[str, ...]]] = []
        self.closed = False

    def increment(self, name: str, *tags: str) -> None:
        self.count(name, 1, *tags)

    def count(self, name: str, value: int, *tags: str) -> None:
        self.counters.append((name, value, tags))

    def timing(self, name: str, seconds: float, *tags: str) -> None:
        self.timings.append((name, seconds, tags))

    def start(self, subject: str, operation: str) -> RecordingTracker:
        tracker = RecordingTracker(subject, operation)
        self.trackers.append(tracker)
        return tracker

    def close(self) -> None:
        self.closed = True

    def tracked(self, subject: str, operation: str) -> list[RecordingTracker]:
        return [t for t in self.trackers if t.subject == subject and t.operation == operation]


def seed(engine: Engine) -> None:
    models.Base.metadata.create_all(engine)
    session_factory = get_session_factory(engine)
    with session_factory() as db:
        db.add_all(
            [
                models.Skill(id=1, title="Python", level=5, created_at=CREATED, updated_at=CREATED),
                models.Skill(id=2, title="Go", level=4, created_at=CREATED, updated_at=None),
                models.Skill(id=3, title="PostgreSQL", level=3, created_at=None, updated_at=None),
                models.Experience(
                    id=1,
                    title="Backend Engineer",
                    description="Built the payments API.",
                    company_name="Acme",
                    company_url="https://acme.example",
                    company_logo_url="https://acme.example/logo.png",
                    languages='["Go", "Python"]',
                    frameworks='["gRPC"]',
                    started_at=date(2019, 3, 1),
                    ended_at=date(2021, 6, 30),
                    created_at=CREATED,
                    updated_at=CREATED,
                ),
                models.Experience(
                    id=2,
                    title="Staff Engineer",
                    description="Platform team.",
                    company_name="Globex",
                    company_url="https://globex.example",
                    company_logo_url=None,
                    languages='["Python"]',
                    frameworks=None,
                    started_at=date(2021, 7, 1),
                    ended_at=None,
                    created_at=CREATED,
                    updated_at=CREATED,
                ),
                models.Experience(
                    id=3,
                    title="Intern",
                    description="",
                    company_name=None,
                    company_url=None,
                    company_logo_url=None,
                    languages="not json",
                    frameworks='{"not": "a list"}',
                    started_at=date(2017, 1, 10),
                    ended_at=date(2017, 6, 30),
                    created_at=None,
                    updated_at=None,
                ),
                models.Education(
                    id=1,
                    title="BSc Computer Science",
                    institution_name="State University",
                    institution_url="https://uni.example",
                    started_at=date(2013, 2, 1),
                    ended_at=date(2017, 12, 15),
                    created_at=CREATED,
                    updated_at=CREATED,
                ),
                models.Education(
                    id=2,
                    title="MSc Distributed Systems",
                    institution_name=None,
                    institution_url=None,
                    started_at=date(2018, 3, 1),
                    ended_at=None,
                    created_at=CREATED,
                    updated_at=CREATED,
                ),
            ]
        )
        db.commit()


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.delenv("STATSD_ADDRESS", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGIN", raising=False)
    get_settings.cache_clear()

    yield

    set_portfolio_client(None)
    get_settings.cache_clear()


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_db_engine("sqlite://")
    seed(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    return get_session_factory(engine)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def container(engine: Engine, sink: RecordingSink) -> Container:
    return build_container(get_settings(), engine=engine, sink=sink)


@pytest.fixture
def grpc_server(container: Container, sink: RecordingSink) -> Iterator[GRPCServer]:
    server = GRPCServer(container.service, sink, host="127.0.0.1", port=0, max_workers=4)
    server.start()
    yield server
    server.stop(0)


@pytest.fixture
def rpc_client(grpc_server: GRPCServer) -> Iterator[PortfolioClient]:
    client = PortfolioClient(f"127.0.0.1:{grpc_server.bound_port}", timeout=5)
    yield client
    client.close()


@pytest.fixture
async def api_client(rpc_client: PortfolioClient) -> AsyncIterator[AsyncClient]:
    set_portfolio_client(rpc_client)
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
