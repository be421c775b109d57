"""Canonical records -> protobuf wire messages."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from google.protobuf.timestamp_pb2 import Timestamp
from google.type import date_pb2

from portfolio.models.schemas import Education, Experience, Skill
from portfolio.rpc.pb import portfolio_pb2


def _set(**fields: Any) -> dict[str, Any]:
    # Absent optional values stay unset on the message.
    return {name: value for name, value in fields.items() if value is not None}


def to_timestamp(value: datetime | None) -> Timestamp | None:
    if value is None:
        return None
    timestamp = Timestamp()
    # Naive values are taken as UTC.
    timestamp.FromDatetime(value)
    return timestamp


def to_date(value: date | None) -> date_pb2.Date | None:
    if value is None:
        return None
    return date_pb2.Date(year=value.year, month=value.month, day=value.day)


def skill_to_proto(skill: Skill) -> portfolio_pb2.Skill:
    return portfolio_pb2.Skill(
        **_set(
            id=skill.id,
            title=skill.title,
            level=skill.level,
            created_at=to_timestamp(skill.created_at),
            updated_at=to_timestamp(skill.updated_at),
        )
    )


def experience_to_proto(experience: Experience) -> portfolio_pb2.Experience:
    company = None
    if experience.company is not None:
        company = portfolio_pb2.Experience.Company(
            name=experience.company.name,
            url=experience.company.url,
            logo_url=experience.company.logo_url,
        )
    return portfolio_pb2.Experience(
        **_set(
            id=experience.id,
            title=experience.title,
            description=experience.description,
            company=company,
            technologies=experience.technologies,
            started_at=to_date(experience.started_at),
            ended_at=to_date(experience.ended_at),
            created_at=to_timestamp(experience.created_at),
            updated_at=to_timestamp(experience.updated_at),
        )
    )


def education_to_proto(education: Education) -> portfolio_pb2.Education:
    institution = None
    if education.institution is not None:
        institution = portfolio_pb2.Education.Institution(
            name=education.institution.name,
            url=education.institution.url,
        )
    return portfolio_pb2.Education(
        **_set(
            id=education.id,
            title=education.title,
            institution=institution,
            started_at=to_date(education.started_at),
            ended_at=to_date(education.ended_at),
            created_at=to_timestamp(education.created_at),
            updated_at=to_timestamp(education.updated_at),
        )
    )
