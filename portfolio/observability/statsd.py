"""StatsD metric sink.

Metrics leave the process as one UDP datagram per metric in the DogStatsD
line format::

    <prefix>.<name>:<value>|c|#tag1,tag2
    <prefix>.<name>:<milliseconds>|ms|#tag1,tag2

Sends are fire-and-forget: a failed send is logged at debug level and handed
back to the caller as the return value, never raised. ``NopClient`` keeps the
same contract without touching the network.
"""

from __future__ import annotations

import socket
import string
from time import perf_counter
from typing import Protocol

import structlog


logger = structlog.get_logger(__name__)

_TAG_MAX_LEN = 50
_TAG_SAFE = frozenset(string.ascii_letters + string.digits + "-_.")
_TAG_UNDERSCORE = frozenset(" :")


def sanitize_tag(value: str) -> str:
    """Reduce arbitrary text (usually an error message) to a safe tag value."""

    out: list[str] = []
    separated = False
    for char in value[:_TAG_MAX_LEN]:
        if char in _TAG_SAFE:
            out.append(char)
            separated = False
        elif char in _TAG_UNDERSCORE:
            # A run like ": " becomes a single underscore.
            if not separated:
                out.append("_")
            separated = True
        else:
            # Dropped characters still separate runs.
            separated = False
    return "".join(out) or "unknown"


class RequestTracker(Protocol):
    def succeeded(self) -> OSError | None: ...

    def failed(self) -> OSError | None: ...

    def failed_with_error(self, error: object) -> OSError | None: ...

    def finished(self) -> OSError | None: ...


class MetricSink(Protocol):
    def increment(self, name: str, *tags: str) -> OSError | None: ...

    def count(self, name: str, value: int, *tags: str) -> OSError | None: ...

    def timing(self, name: str, seconds: float, *tags: str) -> OSError | None: ...

    def start(self, subject: str, operation: str) -> RequestTracker: ...

    def close(self) -> None: ...


class SinkRequestTracker:
    """Tracks one call: elapsed time plus its outcome, reported to a sink.

    Exactly one of ``succeeded``/``failed``/``failed_with_error`` is expected
    per call; ``finished`` is meant for a ``finally`` block and emits its own
    neutral timing even when an outcome was already reported.
    """

    def __init__(self, sink: MetricSink, subject: str, operation: str) -> None:
        self._sink = sink
        self.subject = subject
        self.operation = operation
        self._start = perf_counter()

    def metric_name(self, suffix: str) -> str:
        return f"{self.subject}.{self.operation}.{suffix}"

    def elapsed(self) -> float:
        return perf_counter() - self._start

    def succeeded(self) -> OSError | None:
        elapsed = self.elapsed()
        err = self._sink.increment(self.metric_name("succeeded"))
        if err is not None:
            return err
        return self._sink.timing(self.metric_name("timing"), elapsed, "status:success")

    def failed(self) -> OSError | None:
        elapsed = self.elapsed()
        err = self._sink.increment(self.metric_name("failed"))
        if err is not None:
            return err
        return self._sink.timing(self.metric_name("timing"), elapsed, "status:failed")

    def failed_with_error(self, error: object) -> OSError | None:
        elapsed = self.elapsed()
        error_tag = "error:" + (sanitize_tag(str(error)) if error is not None else "unknown")
        err = self._sink.increment(self.metric_name("failed"), error_tag)
        if err is not None:
            return err
        return self._sink.timing(self.metric_name("timing"), elapsed, "status:failed", error_tag)

    def finished(self) -> OSError | None:
        return self._sink.timing(self.metric_name("timing"), self.elapsed(), "status:finished")


class StatsdClient:
    """UDP StatsD client. One datagram per metric, no acknowledgement."""

    def __init__(self, host: str, port: int, prefix: str = "") -> None:
        self.host = host
        self.port = port
        self.prefix = prefix
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            # connect() on UDP only resolves the peer; nothing is sent.
            self._sock.connect((host, port))
        except OSError:
            self._sock.close()
            raise

    def _format(self, name: str, value: int, kind: str, tags: tuple[str, ...]) -> str:
        metric = f"{self.prefix}.{name}" if self.prefix else name
        line = f"{metric}:{value}|{kind}"
        if tags:
            line += "|#" + ",".join(tags)
        return line + "\n"

    def _send(self, line: str) -> OSError | None:
        try:
            self._sock.send(line.encode("utf-8"))
        except OSError as exc:
            logger.debug("statsd_send_failed", error=str(exc), metric=line.rstrip())
            return exc
        return None

    def increment(self, name: str, *tags: str) -> OSError | None:
        return self.count(name, 1, *tags)

    def count(self, name: str, value: int, *tags: str) -> OSError | None:
        return self._send(self._format(name, int(value), "c", tags))

    def timing(self, name: str, seconds: float, *tags: str) -> OSError | None:
        return self._send(self._format(name, int(seconds * 1000), "ms", tags))

    def start(self, subject: str, operation: str) -> SinkRequestTracker:
        tracker = SinkRequestTracker(self, subject, operation)
        self.increment(tracker.metric_name("started"))
        return tracker

    def close(self) -> None:
        self._sock.close()


class NopRequestTracker:
    def succeeded(self) -> None:
        return None

    def failed(self) -> None:
        return None

    def failed_with_error(self, error: object) -> None:
        return None

    def finished(self) -> None:
        return None


class NopClient:
    """Sink used when no StatsD address is configured."""

    def increment(self, name: str, *tags: str) -> None:
        return None

    def count(self, name: str, value: int, *tags: str) -> None:
        return None

    def timing(self, name: str, seconds: float, *tags: str) -> None:
        return None

    def start(self, subject: str, operation: str) -> NopRequestTracker:
        return NopRequestTracker()

    def close(self) -> None:
        return None


def build_sink(endpoint: tuple[str, int] | None, prefix: str) -> MetricSink:
    if endpoint is None:
        logger.info("statsd_disabled")
        return NopClient()

    host, port = endpoint
    client = StatsdClient(host, port, prefix=prefix)
    logger.info("statsd_enabled", host=host, port=port, prefix=prefix)
    return client
