"""
Logging setup for the advisory service.

Every record carries the current request's trace id; pipeline milestones
are also emitted as one JSON line each through log_event.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional


_TRACE_ID_CTX: ContextVar[str] = ContextVar("trace_id", default="-")
_EVENTS = logging.getLogger("agriadvisor.events")
_INITIALIZED = False


class TraceIdFilter(logging.Filter):
    """Copy the request trace id onto each record as ``trace_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _TRACE_ID_CTX.get()
        return True


def init_logging(*, log_path: Optional[str] = None, level: int = logging.INFO) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    else:
        handler = logging.StreamHandler()
    handler.addFilter(TraceIdFilter())
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s [%(trace_id)s]: %(message)s",
        handlers=[handler],
    )
    _INITIALIZED = True


def set_trace_id(trace_id: str):
    return _TRACE_ID_CTX.set(trace_id)


def reset_trace_id(token) -> None:
    _TRACE_ID_CTX.reset(token)


def log_event(event: str, **fields: Any) -> None:
    """Log a pipeline milestone as a single JSON object."""
    payload = {"event": event, "trace_id": _TRACE_ID_CTX.get(), **fields}
    _EVENTS.info(json.dumps(payload, ensure_ascii=True, default=str))
