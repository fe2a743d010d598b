"""Structured JSON logging with request and payment context fields.

Every record carries the correlation id from the request, the order/payment
the request is about, and the active OpenTelemetry trace id so log lines can
be joined to spans.
"""

import logging
import sys
from contextvars import ContextVar

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

from bookpay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
order_id_ctx: ContextVar[str] = ContextVar("order_id", default="")
payment_id_ctx: ContextVar[str] = ContextVar("payment_id", default="")


def bind_payment_context(order_id: str | None = None, payment_id: str | None = None) -> None:
    """Attach the order/payment being handled to subsequent log records."""

    if order_id is not None:
        order_id_ctx.set(order_id)
    if payment_id is not None:
        payment_id_ctx.set(payment_id)


class ContextFilter(logging.Filter):
    """Inject service, correlation, payment and span identifiers."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.order_id = order_id_ctx.get()
        record.payment_id = payment_id_ctx.get()
        span_context = trace.get_current_span().get_span_context()
        record.otel_trace_id = format(span_context.trace_id, "032x") if span_context.is_valid else ""
        return True


def configure_logging() -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(otel_trace_id)s "
        "%(order_id)s %(payment_id)s %(message)s",
        rename_fields={"levelname": "level", "trace_id": "correlation_id"},
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("bookpay")
