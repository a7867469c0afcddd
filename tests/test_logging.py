"""Tests for structured logging."""

import json
import logging

from image_history.utils.logging import StructuredFormatter, set_request_id


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="image_history.test",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg="History %s failed",
        args=("put",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_basic_fields(self) -> None:
        set_request_id("")
        payload = json.loads(StructuredFormatter().format(_record()))

        assert payload["level"] == "ERROR"
        assert payload["logger"] == "image_history.test"
        assert payload["message"] == "History put failed"
        assert "request_id" not in payload
        assert "error_kind" not in payload

    def test_includes_structured_error_fields(self) -> None:
        record = _record(operation="put", error_kind="storage_unavailable")

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["operation"] == "put"
        assert payload["error_kind"] == "storage_unavailable"

    def test_includes_request_id(self) -> None:
        set_request_id("req-123")
        try:
            payload = json.loads(StructuredFormatter().format(_record()))
        finally:
            set_request_id("")

        assert payload["request_id"] == "req-123"
