"""Tests for trace id propagation."""

import structlog

from rainwake.observability.tracing import TraceContext, get_trace_id


def test_trace_context_binds_and_restores() -> None:
    assert get_trace_id() == ""

    with TraceContext(receiver="alarm") as outer:
        assert get_trace_id() == outer
        assert structlog.contextvars.get_contextvars()["receiver"] == "alarm"

        with TraceContext("inner-id") as inner:
            assert inner == "inner-id"
            assert get_trace_id() == "inner-id"

        assert get_trace_id() == outer

    assert get_trace_id() == ""
    context = structlog.contextvars.get_contextvars()
    assert "trace_id" not in context
    assert "receiver" not in context
