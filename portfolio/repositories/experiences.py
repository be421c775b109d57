from __future__ import annotations

import json
import logging

from sqlalchemy.orm import Session, sessionmaker

from portfolio.db import models
from portfolio.errors import ExperienceNotFoundError
from portfolio.models.schemas import Company, Experience
from portfolio.observability.statsd import MetricSink
from portfolio.repositories.base import Repository, SqlRepository, as_date
from portfolio.repositories.metrics import MetricsRepository

logger = logging.getLogger(__name__)


def _parse_string_list(raw: str | None, *, column: str, record_id: int) -> list[str]:
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except ValueError:
        logger.warning("experience.malformed_list", extra={"column": column, "experience_id": record_id})
        return []
    if not isinstance(values, list):
        logger.warning("experience.malformed_list", extra={"column": column, "experience_id": record_id})
        return []
    return [str(v) for v in values]


class ExperiencesDBRepository(SqlRepository[models.Experience, Experience]):
    model = models.Experience
    not_found = ExperienceNotFoundError
    order_by = (models.Experience.started_at.desc(), models.Experience.id.desc())

    def to_record(self, row: models.Experience) -> Experience:
        company = None
        if row.company_name or row.company_url or row.company_logo_url:
            company = Company(
                name=row.company_name or "",
                url=row.company_url or "",
                logo_url=row.company_logo_url or "",
            )

        technologies = _parse_string_list(row.languages, column="languages", record_id=row.id)
        technologies += _parse_string_list(row.frameworks, column="frameworks", record_id=row.id)

        return Experience(
            id=row.id,
            title=row.title,
            description=row.description or "",
            company=company,
            technologies=technologies,
            started_at=as_date(row.started_at),
            ended_at=as_date(row.ended_at),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def new_experiences_repository(session_factory: sessionmaker[Session], sink: MetricSink) -> Repository[Experience]:
    return MetricsRepository(
        ExperiencesDBRepository(session_factory),
        sink,
        subject="experiences",
        list_operation="ListExperiences",
        get_operation="GetExperience",
    )
