"""
Structured JSON logging for the ledger kernel.

Every record is rendered as one JSON object per line: timestamp, level,
logger, the snake_case event name as ``message``, any ``extra`` fields, the
fields bound through ``LogContext``, and for failures the exception type,
its ``code`` and its structured attributes.

Context fields (tenant, actor, entry, correlation and trace ids) live in a
single ContextVar holding an immutable mapping, so concurrent requests and
threads never see each other's values.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID

LEDGER_LOGGER = "ledger_kernel"

CONTEXT_FIELDS = ("correlation_id", "tenant_id", "actor_id", "entry_id", "trace_id")

_EMPTY: Mapping[str, str] = MappingProxyType({})
_bound: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default=_EMPTY)


# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------


def _merge(fields: Mapping[str, Any]) -> Mapping[str, str]:
    merged = dict(_bound.get())
    for name, value in fields.items():
        if name in CONTEXT_FIELDS and value is not None:
            merged[name] = str(value)
    return MappingProxyType(merged)


class LogContext:
    """Request-scoped log fields, safe across threads and tasks."""

    @classmethod
    def set(cls, **fields: str | UUID | None) -> None:
        """Bind fields until cleared.  None values leave a field unchanged."""
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        _bound.set(_merge(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_bound.get())

    @classmethod
    def clear(cls) -> None:
        _bound.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Bind fields for the duration of a ``with`` block.

        Values are stringified; unknown names and None values are ignored.
        The previous bindings are restored on exit, even on error.
        """
        token = _bound.set(_merge(fields))
        try:
            yield cls
        finally:
            _bound.reset(token)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, code and public attributes of a raised exception."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_bound.get(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger for a kernel component, e.g. ``get_logger("services.journal")``."""
    return logging.getLogger(f"{LEDGER_LOGGER}.{name}")


_setup_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach the JSON formatter to the ``ledger_kernel`` logger.

    Idempotent: only the first call in a process (or since
    ``reset_logging``) takes effect.  Records do not propagate to the root
    logger.
    """
    global _configured
    with _setup_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    ledger_logger = logging.getLogger(LEDGER_LOGGER)
    ledger_logger.setLevel(level)
    ledger_logger.propagate = False
    ledger_logger.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging.  Tests only."""
    global _configured
    with _setup_lock:
        _configured = False
    ledger_logger = logging.getLogger(LEDGER_LOGGER)
    ledger_logger.handlers.clear()
    ledger_logger.setLevel(logging.WARNING)
