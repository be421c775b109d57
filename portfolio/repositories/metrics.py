from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

from portfolio.observability.statsd import MetricSink
from portfolio.repositories.base import Repository


RecordT = TypeVar("RecordT")
T = TypeVar("T")


class MetricsRepository(Generic[RecordT]):
    """Wraps a repository and reports every call to a metric sink.

    Errors from the wrapped repository pass through untouched; this class only
    observes them.
    """

    def __init__(
        self,
        repo: Repository[RecordT],
        sink: MetricSink,
        *,
        subject: str,
        list_operation: str,
        get_operation: str,
    ) -> None:
        self._repo = repo
        self._sink = sink
        self.subject = subject
        self.list_operation = list_operation
        self.get_operation = get_operation

    def _track(self, operation: str, fn: Callable[[], T]) -> T:
        tracker = self._sink.start(self.subject, operation)
        try:
            result = fn()
        except Exception as exc:
            tracker.failed_with_error(exc)
            raise
        else:
            tracker.succeeded()
            return result
        finally:
            # Emitted on top of the outcome timing; dashboards filter on the status tag.
            tracker.finished()

    def list(self) -> Sequence[RecordT]:
        return self._track(self.list_operation, self._repo.list)

    def get(self, record_id: int) -> RecordT:
        return self._track(self.get_operation, lambda: self._repo.get(record_id))
