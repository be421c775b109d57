from __future__ import annotations

import re
import socket

import pytest

from portfolio.observability import statsd
from portfolio.observability.statsd import (
    NopClient,
    SinkRequestTracker,
    StatsdClient,
    build_sink,
    sanitize_tag,
)


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def client(receiver):
    host, port = receiver.getsockname()
    client = StatsdClient(host, port, prefix="portfolio_grpc.api")
    yield client
    client.close()


def _recv(sock: socket.socket) -> str:
    data, _ = sock.recvfrom(4096)
    return data.decode("utf-8")


def _assert_quiet(sock: socket.socket) -> None:
    sock.settimeout(0.2)
    with pytest.raises(socket.timeout):
        sock.recvfrom(4096)


def test_sanitize_tag_replaces_space_and_colon() -> None:
    assert sanitize_tag("connection refused: timeout") == "connection_refused_timeout"


def test_sanitize_tag_drops_other_characters() -> None:
    assert sanitize_tag("pq: relation \"skills\" does not exist!") == "pq_relation_skills_does_not_exist"
    assert sanitize_tag("a/b=c+d") == "abcd"
    assert sanitize_tag("v1.2_rc-3") == "v1.2_rc-3"


def test_sanitize_tag_truncates_to_fifty_characters() -> None:
    assert sanitize_tag("x" * 80) == "x" * 50
    # Truncation happens before filtering, so dropped characters shorten the result.
    assert sanitize_tag("!" * 10 + "y" * 60) == "y" * 40


def test_sanitize_tag_empty_result_is_unknown() -> None:
    assert sanitize_tag("") == "unknown"
    assert sanitize_tag("!!!") == "unknown"


def test_counter_and_timing_wire_format(client, receiver) -> None:
    assert client.increment("skills.GetSkill.started") is None
    assert _recv(receiver) == "portfolio_grpc.api.skills.GetSkill.started:1|c\n"

    assert client.count("batch.rows", 42, "table:skills", "env:test") is None
    assert _recv(receiver) == "portfolio_grpc.api.batch.rows:42|c|#table:skills,env:test\n"

    assert client.timing("skills.GetSkill.timing", 1.5, "status:success") is None
    assert _recv(receiver) == "portfolio_grpc.api.skills.GetSkill.timing:1500|ms|#status:success\n"


def test_timing_truncates_to_whole_milliseconds(client, receiver) -> None:
    client.timing("t", 0.0129)
    assert _recv(receiver) == "portfolio_grpc.api.t:12|ms\n"


def test_start_emits_started_counter(client, receiver) -> None:
    tracker = client.start("skills", "ListSkills")
    assert isinstance(tracker, SinkRequestTracker)
    assert _recv(receiver) == "portfolio_grpc.api.skills.ListSkills.started:1|c\n"


def test_succeeded_emits_one_counter_and_one_timing(client, receiver) -> None:
    tracker = client.start("skills", "GetSkill")
    _recv(receiver)

    assert tracker.succeeded() is None
    assert _recv(receiver) == "portfolio_grpc.api.skills.GetSkill.succeeded:1|c\n"
    assert re.fullmatch(r"portfolio_grpc\.api\.skills\.GetSkill\.timing:\d+\|ms\|#status:success\n", _recv(receiver))
    _assert_quiet(receiver)


def test_failed_emits_one_counter_and_one_timing(client, receiver) -> None:
    tracker = client.start("educations", "ListEducations")
    _recv(receiver)

    tracker.failed()
    assert _recv(receiver) == "portfolio_grpc.api.educations.ListEducations.failed:1|c\n"
    assert re.fullmatch(
        r"portfolio_grpc\.api\.educations\.ListEducations\.timing:\d+\|ms\|#status:failed\n", _recv(receiver)
    )
    _assert_quiet(receiver)


def test_failed_with_error_tags_sanitized_error(client, receiver) -> None:
    tracker = client.start("experiences", "GetExperience")
    _recv(receiver)

    tracker.failed_with_error(ConnectionError("connection refused: timeout"))
    assert (
        _recv(receiver)
        == "portfolio_grpc.api.experiences.GetExperience.failed:1|c|#error:connection_refused_timeout\n"
    )
    assert re.fullmatch(
        r"portfolio_grpc\.api\.experiences\.GetExperience\.timing:\d+\|ms\|#status:failed,error:connection_refused_timeout\n",
        _recv(receiver),
    )
    _assert_quiet(receiver)


def test_failed_with_error_without_message_is_unknown(client, receiver) -> None:
    tracker = client.start("skills", "GetSkill")
    _recv(receiver)

    tracker.failed_with_error(RuntimeError())
    assert _recv(receiver).endswith("|#error:unknown\n")


def test_finished_emits_single_timing_even_after_outcome(client, receiver) -> None:
    tracker = client.start("skills", "GetSkill")
    _recv(receiver)
    tracker.succeeded()
    _recv(receiver)
    _recv(receiver)

    tracker.finished()
    assert re.fullmatch(r"portfolio_grpc\.api\.skills\.GetSkill\.timing:\d+\|ms\|#status:finished\n", _recv(receiver))
    _assert_quiet(receiver)


def test_tracker_against_any_sink(sink) -> None:
    tracker = SinkRequestTracker(sink, "skills", "GetSkill")

    tracker.succeeded()
    assert [name for name, _, _ in sink.counters] == ["skills.GetSkill.succeeded"]
    assert [(name, tags) for name, _, tags in sink.timings] == [("skills.GetSkill.timing", ("status:success",))]

    tracker.finished()
    assert len(sink.counters) == 1
    assert [tags for _, _, tags in sink.timings] == [("status:success",), ("status:finished",)]


def test_send_failure_is_returned_not_raised(client) -> None:
    client.close()
    err = client.increment("skills.GetSkill.started")
    assert isinstance(err, OSError)

    tracker = SinkRequestTracker(client, "skills", "GetSkill")
    assert isinstance(tracker.succeeded(), OSError)
    assert isinstance(tracker.finished(), OSError)


def test_empty_prefix_is_omitted(receiver) -> None:
    host, port = receiver.getsockname()
    client = StatsdClient(host, port)
    try:
        client.increment("hits")
        assert _recv(receiver) == "hits:1|c\n"
    finally:
        client.close()


def test_nop_client_never_touches_the_network(monkeypatch) -> None:
    def _no_sockets(*args, **kwargs):
        raise AssertionError("NopClient must not open sockets")

    monkeypatch.setattr(statsd.socket, "socket", _no_sockets)

    sink = NopClient()
    assert sink.increment("a", "t:1") is None
    assert sink.count("a", 5) is None
    assert sink.timing("a", 0.5, "status:success") is None

    tracker = sink.start("skills", "GetSkill")
    assert tracker.succeeded() is None
    assert tracker.failed() is None
    assert tracker.failed_with_error(RuntimeError("boom")) is None
    assert tracker.finished() is None
    assert sink.close() is None


def test_build_sink_without_endpoint_is_nop() -> None:
    assert isinstance(build_sink(None, "portfolio_grpc.api"), NopClient)


def test_build_sink_with_endpoint_sends_udp(receiver) -> None:
    sink = build_sink(receiver.getsockname(), "svc")
    try:
        assert isinstance(sink, StatsdClient)
        sink.increment("up")
        assert _recv(receiver) == "svc.up:1|c\n"
    finally:
        sink.close()


def test_sanitize_tag_collapses_adjacent_separator_runs() -> None:
    assert sanitize_tag("connection refused: timeout") == "connection_refused_timeout"
    assert sanitize_tag("rpc error: code = NotFound") == "rpc_error_code__NotFound"
    assert sanitize_tag("a_ b") == "a__b"


def test_sanitize_tag_dropped_character_splits_separator_runs() -> None:
    assert sanitize_tag("code = NotFound") == "code__NotFound"
    assert sanitize_tag("a:!:b") == "a__b"
