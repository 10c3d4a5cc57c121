"""
Structured JSON logging for the KPI kernel.

Every record under the ``kpi_kernel`` logger namespace is rendered as one
JSON line.  The line opens with the common envelope (``ts``, ``level``,
``logger``, ``message``), then the KPI envelope fields that tie a record to
a project and a ledger entry or engine run, then any remaining ``extra``
data.

Field sources, in precedence order:
    1. ``extra={...}`` passed at the call site
    2. ``LogContext.bind(...)`` fields active in the current context

Decimals are written as strings so amounts survive the round trip exactly;
enums are written by value.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from kpi_kernel.exceptions import KpiKernelError

CONTEXT_FIELDS = ("correlation_id", "project_id", "actor_id", "entry_id")

# Rendered right after the common envelope when present.
_KPI_ENVELOPE = (
    "project_id",
    "entry_id",
    "trace_type",
    "engine_name",
    "engine_version",
    "input_fingerprint",
)

_LOGGER_PREFIX = "kpi_kernel"

_context: ContextVar[dict[str, str]] = ContextVar("kpi_log_context", default={})


class LogContext:
    """Context-local log fields shared by every record in a unit of work.

    Backed by one ``ContextVar`` holding an immutable snapshot, so threads
    and asyncio tasks each see their own fields.
    """

    @staticmethod
    def current() -> dict[str, str]:
        """Fields bound in the current context."""
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Overlay ``fields`` for the duration of the block.

        ``None`` values are skipped.  Unknown names raise ``TypeError``.
        """
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _context.set(merged)
        try:
            yield
        finally:
            _context.reset(token)


_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    # Decimal, UUID and anything else without a JSON form
    return str(obj)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, KpiKernelError):
        error["code"] = exc.code
        error.update({k: v for k, v in vars(exc).items() if not k.startswith("_")})
    return error


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        fields = {**LogContext.current(), **extra}

        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _KPI_ENVELOPE:
            if name in fields:
                payload[name] = fields.pop(name)
        payload.update(fields)

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_payload(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the kpi_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def _structured_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_kpi_structured", False)]


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """Attach the JSON handler to the kpi_kernel logger.

    A second call only adjusts the level; the handler is never duplicated.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    if not _structured_handlers(root):
        h = handler if handler is not None else logging.StreamHandler(sys.stderr)
        h.setFormatter(StructuredFormatter())
        h._kpi_structured = True
        root.addHandler(h)
        root.propagate = False
    return root


def reset_logging() -> None:
    """Detach the JSON handler and restore defaults. For tests."""
    root = logging.getLogger(_LOGGER_PREFIX)
    for h in _structured_handlers(root):
        root.removeHandler(h)
    root.setLevel(logging.NOTSET)
    root.propagate = True
