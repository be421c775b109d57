from __future__ import annotations


class ConfigError(Exception):
    """Raised at startup when configuration is missing or malformed."""


class RecordNotFoundError(LookupError):
    """No row matched the requested identifier."""

    entity = "record"

    def __init__(self, record_id: int | None = None) -> None:
        self.record_id = record_id
        super().__init__(f"{self.entity} not found")


class SkillNotFoundError(RecordNotFoundError):
    entity = "skill"


class ExperienceNotFoundError(RecordNotFoundError):
    entity = "experience"


class EducationNotFoundError(RecordNotFoundError):
    entity = "education"
