from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from portfolio.db import models
from portfolio.errors import SkillNotFoundError
from portfolio.models.schemas import Skill
from portfolio.observability.statsd import MetricSink
from portfolio.repositories.base import Repository, SqlRepository
from portfolio.repositories.metrics import MetricsRepository


class SkillsDBRepository(SqlRepository[models.Skill, Skill]):
    model = models.Skill
    not_found = SkillNotFoundError
    # Skills carry no start date; keep the listing stable by id.
    order_by = (models.Skill.id.asc(),)

    def to_record(self, row: models.Skill) -> Skill:
        return Skill(
            id=row.id,
            title=row.title,
            level=row.level,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def new_skills_repository(session_factory: sessionmaker[Session], sink: MetricSink) -> Repository[Skill]:
    return MetricsRepository(
        SkillsDBRepository(session_factory),
        sink,
        subject="skills",
        list_operation="ListSkills",
        get_operation="GetSkill",
    )
