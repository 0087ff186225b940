import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from refsearch.core.request_context import get_character_id, get_request_id, get_stage

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "taskName",
}

# Search context copied onto each record, omitted from output when empty.
_CONTEXT_FIELDS = {
    "character_id": get_character_id,
    "stage": get_stage,
}


class RequestIdFilter(logging.Filter):
    """Stamp the request ID and the active search context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "unknown"
        for field_name, getter in _CONTEXT_FIELDS.items():
            setattr(record, field_name, getter() or "")
        return True


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per line: fixed envelope, search context, then ``extra`` fields."""

    def build_payload(self, record: logging.LogRecord) -> dict[str, object]:
        payload: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "unknown"),
        }
        for field_name in _CONTEXT_FIELDS:
            value = getattr(record, field_name, None)
            if value:
                payload[field_name] = value
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload or key in _CONTEXT_FIELDS:
                continue
            if key.startswith("_") or value is None:
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return payload

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.build_payload(record), default=str)


def configure_logging(level_name: str, log_file: str | None = None) -> None:
    """Install the structured JSON handlers on the root logger."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    formatter = StructuredJsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(RequestIdFilter())
    root_logger.addHandler(stream_handler)

    # Structured request_complete logs replace uvicorn's access log.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RequestIdFilter())
        root_logger.addHandler(file_handler)
