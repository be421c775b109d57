from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from portfolio.db import models
from portfolio.errors import EducationNotFoundError
from portfolio.models.schemas import Education, Institution
from portfolio.observability.statsd import MetricSink
from portfolio.repositories.base import Repository, SqlRepository, as_date
from portfolio.repositories.metrics import MetricsRepository


class EducationsDBRepository(SqlRepository[models.Education, Education]):
    model = models.Education
    not_found = EducationNotFoundError
    order_by = (models.Education.started_at.desc(), models.Education.id.desc())

    def to_record(self, row: models.Education) -> Education:
        institution = None
        if row.institution_name or row.institution_url:
            institution = Institution(name=row.institution_name or "", url=row.institution_url or "")

        return Education(
            id=row.id,
            title=row.title,
            institution=institution,
            started_at=as_date(row.started_at),
            ended_at=as_date(row.ended_at),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def new_educations_repository(session_factory: sessionmaker[Session], sink: MetricSink) -> Repository[Education]:
    return MetricsRepository(
        EducationsDBRepository(session_factory),
        sink,
        subject="educations",
        list_operation="ListEducations",
        get_operation="GetEducation",
    )
