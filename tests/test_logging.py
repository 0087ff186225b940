import json
import logging
import sys

from refsearch.core.logging import RequestIdFilter, StructuredJsonFormatter
from refsearch.core.request_context import log_context, reset_request_id, set_request_id


def _record(msg: str = "scene_analyzed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("refsearch.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_record_carries_request_and_search_context():
    token = set_request_id("req-1")
    try:
        with log_context(character_id="mira", stage="score"):
            record = _record(scene_type="dialogue")
            RequestIdFilter().filter(record)
    finally:
        reset_request_id(token)

    payload = json.loads(StructuredJsonFormatter().format(record))
    assert payload["message"] == "scene_analyzed"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["character_id"] == "mira"
    assert payload["stage"] == "score"
    assert payload["scene_type"] == "dialogue"
    assert "lineno" not in payload
    assert "args" not in payload


def test_empty_context_is_omitted():
    record = _record()
    RequestIdFilter().filter(record)
    payload = StructuredJsonFormatter().build_payload(record)
    assert payload["request_id"] == "unknown"
    assert "character_id" not in payload
    assert "stage" not in payload


def test_exception_text_is_included():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("refsearch.test", logging.ERROR, __file__, 1, "failed", (), None)
        record.exc_info = sys.exc_info()
    payload = StructuredJsonFormatter().build_payload(record)
    assert "RuntimeError: boom" in payload["exc_info"]
