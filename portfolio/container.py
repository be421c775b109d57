"""Composition root: builds every collaborator with explicit constructor calls."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from portfolio.config import Settings
from portfolio.db.session import create_db_engine, get_session_factory, ping
from portfolio.models.schemas import Education, Experience, Skill
from portfolio.observability.statsd import MetricSink, build_sink
from portfolio.repositories.base import Repository
from portfolio.repositories.educations import new_educations_repository
from portfolio.repositories.experiences import new_experiences_repository
from portfolio.repositories.skills import new_skills_repository
from portfolio.rpc.service import PortfolioService


@dataclass
class Container:
    engine: Engine
    session_factory: sessionmaker[Session]
    sink: MetricSink
    skills: Repository[Skill]
    experiences: Repository[Experience]
    educations: Repository[Education]
    service: PortfolioService

    def close(self) -> None:
        self.sink.close()
        self.engine.dispose()


def build_container(
    settings: Settings,
    *,
    engine: Engine | None = None,
    sink: MetricSink | None = None,
) -> Container:
    """Wire the service. Raises if the store is unreachable or config is invalid."""

    engine = engine if engine is not None else create_db_engine(settings.database_url)
    ping(engine)
    session_factory = get_session_factory(engine)

    if sink is None:
        sink = build_sink(settings.statsd_endpoint(), settings.statsd_prefix)

    skills = new_skills_repository(session_factory, sink)
    experiences = new_experiences_repository(session_factory, sink)
    educations = new_educations_repository(session_factory, sink)
    service = PortfolioService(skills=skills, experiences=experiences, educations=educations)

    return Container(
        engine=engine,
        session_factory=session_factory,
        sink=sink,
        skills=skills,
        experiences=experiences,
        educations=educations,
        service=service,
    )
