from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, ClassVar, Generic, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from portfolio.db.models import Base
from portfolio.errors import RecordNotFoundError

# Hard cap on rows returned by list(); there is no pagination.
LIST_LIMIT = 1000

RecordT = TypeVar("RecordT")
RecordT_co = TypeVar("RecordT_co", covariant=True)
ModelT = TypeVar("ModelT", bound=Base)


class Repository(Protocol[RecordT_co]):
    """Read-only access to one entity."""

    def list(self) -> Sequence[RecordT_co]: ...

    def get(self, record_id: int) -> RecordT_co: ...


def as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


class SqlRepository(Generic[ModelT, RecordT]):
    """Single-table repository: one SELECT per call, rows mapped to records.

    Subclasses set ``model``, ``not_found`` and ``order_by`` and implement
    ``to_record``.
    """

    model: ClassVar[type[Base]]
    not_found: ClassVar[type[RecordNotFoundError]] = RecordNotFoundError
    order_by: ClassVar[tuple[Any, ...]] = ()

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def to_record(self, row: ModelT) -> RecordT:
        raise NotImplementedError

    def list(self) -> Sequence[RecordT]:
        stmt = select(self.model).order_by(*self.order_by).limit(LIST_LIMIT)
        with self._session_factory() as db:
            rows = db.execute(stmt).scalars().all()
            return [self.to_record(row) for row in rows]

    def get(self, record_id: int) -> RecordT:
        stmt = select(self.model).where(self.model.id == record_id).limit(1)  # type: ignore[attr-defined]
        with self._session_factory() as db:
            row = db.execute(stmt).scalar_one_or_none()
            if row is None:
                raise self.not_found(record_id)
            return self.to_record(row)
