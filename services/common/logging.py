import logging
from contextvars import ContextVar
from typing import Literal

from opentelemetry import trace

from .config import ServiceSettings


_PLACEHOLDER = "-"
_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | trace_id=%(trace_id)s span_id=%(span_id)s "
    "user=%(user_id)s | %(message)s"
)

current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


def bind_user(user_id: object | None) -> None:
    """Attach the authenticated identity to log records emitted by this task."""

    current_user_id.set(str(user_id) if user_id is not None else None)


class RequestContextFilter(logging.Filter):
    """Populate trace/span identifiers and the caller identity on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = _PLACEHOLDER
            record.span_id = _PLACEHOLDER
        record.user_id = current_user_id.get() or _PLACEHOLDER
        return True


def configure_logging(settings: ServiceSettings) -> None:
    """Configure root logging level and format."""

    logging_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = settings.log_level
    logging.basicConfig(level=logging_level, format=_LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(logging_level)
    context_filter = next(
        (f for f in root_logger.filters if isinstance(f, RequestContextFilter)),
        None,
    )
    if context_filter is None:
        context_filter = RequestContextFilter()
        root_logger.addFilter(context_filter)
    for handler in root_logger.handlers:
        if not any(isinstance(f, RequestContextFilter) for f in handler.filters):
            handler.addFilter(context_filter)
