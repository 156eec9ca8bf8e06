"""Tests for the structured logger and the metrics hook plumbing."""

from __future__ import annotations

import io
import json
import logging
import sys

from notionport.observability import (
    MetricsHook,
    NoopMetricsHook,
    StructuredFormatter,
    get_logger,
    resolve_metrics,
)


def _record(msg="hello", level=logging.INFO, **attrs):
    record = logging.LogRecord(
        name="notionport.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_guaranteed_keys(self):
        entry = json.loads(StructuredFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "notionport.test"
        assert entry["message"] == "hello"
        assert "ts" in entry

    def test_extra_fields_merged(self):
        record = _record(extra_fields={"parent_id": "abc", "blocks": 100})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["parent_id"] == "abc"
        assert entry["blocks"] == 100

    def test_non_serialisable_values_stringified(self):
        record = _record(extra_fields={"obj": object()})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["obj"].startswith("<object object")

    def test_single_line(self):
        line = StructuredFormatter().format(_record("multi\nline"))
        assert "\n" not in line

    def test_exception_serialised(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        entry = json.loads(StructuredFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


class TestGetLogger:
    def test_writes_json_to_stream(self):
        stream = io.StringIO()
        log = get_logger("notionport.test.stream", stream=stream)
        log.info("page migrated", extra={"extra_fields": {"source_id": "42"}})
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "page migrated"
        assert entry["source_id"] == "42"

    def test_repeated_calls_do_not_stack_handlers(self):
        first = get_logger("notionport.test.idempotent")
        second = get_logger("notionport.test.idempotent")
        assert first is second
        assert len(first.handlers) == 1

    def test_string_level(self):
        log = get_logger("notionport.test.level", level="debug")
        assert log.level == logging.DEBUG

    def test_does_not_propagate(self):
        assert get_logger("notionport.test.propagate").propagate is False


class TestMetrics:
    def test_noop_satisfies_protocol(self):
        hook = NoopMetricsHook()
        assert isinstance(hook, MetricsHook)
        hook.increment("x")
        hook.timing("y", 1.5, tags={"a": "b"})

    def test_resolve_none_gives_noop(self):
        assert isinstance(resolve_metrics(None), NoopMetricsHook)

    def test_resolve_keeps_custom_hook(self, metrics):
        assert resolve_metrics(metrics) is metrics
        assert isinstance(metrics, MetricsHook)
