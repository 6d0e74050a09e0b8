"""Logging helpers that tag every line with a per-run trace id."""

import logging
import uuid
from typing import Optional, Union

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def new_trace_id() -> str:
    """Short random id used to correlate log lines of one operation."""
    return uuid.uuid4().hex[:8].upper()


class TraceAdapter(logging.LoggerAdapter):
    """Prefix messages with `[trace_id]` and expose the id as a record attribute."""

    def __init__(self, logger: LoggerLike, trace_id: str):
        super().__init__(logger, {"trace_id": trace_id})

    @property
    def trace_id(self) -> str:
        return self.extra["trace_id"]

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("trace_id", self.trace_id)
        kwargs["extra"] = extra
        return f"[{self.trace_id}] {msg}", kwargs


def with_trace(logger: LoggerLike, trace_id: Optional[str] = None) -> TraceAdapter:
    """Wrap a logger for one operation, reusing the caller's trace id if given."""
    if isinstance(logger, TraceAdapter):
        if trace_id in (None, logger.trace_id):
            return logger
        logger = logger.logger
    return TraceAdapter(logger, trace_id or new_trace_id())


def configure_logging(level: int = logging.INFO) -> None:
    """Console logging for the CLI."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
