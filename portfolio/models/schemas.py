from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class Skill(BaseModel):
    id: int
    title: str
    level: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Company(BaseModel):
    name: str = ""
    url: str = ""
    logo_url: str = ""


class Experience(BaseModel):
    id: int
    title: str
    description: str = ""
    company: Company | None = None
    technologies: list[str] = Field(default_factory=list)
    started_at: date | None = None
    ended_at: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Institution(BaseModel):
    name: str = ""
    url: str = ""


class Education(BaseModel):
    id: int
    title: str
    institution: Institution | None = None
    started_at: date | None = None
    ended_at: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RpcErrorBody(BaseModel):
    code: int
    message: str
    details: list[dict] = Field(default_factory=list)
