"""Structured logging setup with JSON-lines or plain text output."""

from __future__ import annotations

import contextvars
import json
import logging
import math
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Literal, TextIO

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogFormat = Literal["json", "text"]

_DEFAULT_LOGGER_NAME: Final[str] = "archconform"
_HANDLER_MARKER: Final[str] = "_archconform_handler"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_CorrelationState = tuple[tuple[str, str], ...]
_CORRELATION_CONTEXT: contextvars.ContextVar[_CorrelationState] = contextvars.ContextVar(
    "archconform_observability_correlation", default=()
)


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in sorted(get_correlation_context().items()):
            event[key] = value

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras
        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            event["stack"] = str(record.stack_info)

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """``LEVEL logger: message key=value ...`` with correlation fields first."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [f"{record.levelname} {record.name}: {record.getMessage()}"]
        context = get_correlation_context()
        extras = _extract_extra_fields(record)
        for key in sorted(context):
            parts.append(f"{key}={context[key]}")
        for key in sorted(extras):
            value = extras[key]
            rendered = value if isinstance(value, str) else json.dumps(value, sort_keys=True)
            parts.append(f"{key}={rendered}")
        text = " ".join(parts)
        if record.exc_info is not None:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def setup_logging(
    level: int | str = "WARNING",
    log_format: LogFormat = "text",
    stream: TextIO | None = None,
    *,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Configure the package logger with one stream handler and return it.

    Calling again replaces the handler installed by a previous call, so repeated CLI
    invocations inside one process never duplicate output.
    """

    if log_format not in ("json", "text"):
        raise ValueError(f"unsupported log format {log_format!r}")

    handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    handler.setFormatter(_JsonLineFormatter() if log_format == "json" else _TextFormatter())
    setattr(handler, _HANDLER_MARKER, True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(_parse_log_level(level))
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def setup_logging_from_config(
    config: Mapping[str, object], stream: TextIO | None = None
) -> logging.Logger:
    """Apply the ``[observability]`` section of an effective config."""

    section = config.get("observability", {})
    if not isinstance(section, Mapping):
        section = {}
    raw_level = section.get("log_level", "WARNING")
    raw_format = section.get("log_format", "text")
    return setup_logging(
        level=raw_level if isinstance(raw_level, (int, str)) else "WARNING",
        log_format="json" if raw_format == "json" else "text",
        stream=stream,
    )


def get_correlation_context() -> dict[str, str]:
    """Return the current correlation context as a plain dictionary."""
    return dict(_CORRELATION_CONTEXT.get())


def set_correlation_fields(**fields: str | None) -> contextvars.Token[_CorrelationState]:
    """Set correlation fields for the active context and return a reset token."""
    state = get_correlation_context()
    for key, value in fields.items():
        if value is None:
            state.pop(key, None)
            continue
        normalized = value.strip()
        if not normalized:
            raise ValueError(f"correlation value for {key!r} must not be empty")
        state[key] = normalized
    return _CORRELATION_CONTEXT.set(tuple(state.items()))


def reset_correlation_fields(token: contextvars.Token[_CorrelationState]) -> None:
    """Reset correlation context to a previous token."""
    _CORRELATION_CONTEXT.reset(token)


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Temporarily bind correlation fields for log records in scope."""
    token = set_correlation_fields(**fields)
    try:
        yield
    finally:
        reset_correlation_fields(token)


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    return {
        key: _jsonable(value)
        for key, value in vars(record).items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


def _jsonable(value: object) -> JSONValue:
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_jsonable(item) for item in value), key=_canonical)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _canonical(value: JSONValue) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LogFormat",
    "correlation_scope",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "setup_logging_from_config",
]
