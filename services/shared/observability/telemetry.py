"""
Logging and tracing bootstrap for the dashboard service.

Log records are rendered as JSON and carry the service name and the id of the
request being served, so the sheet fetches of one dashboard load can be
followed across log lines. Tracing is off unless `ENABLE_TELEMETRY` is set; when
on, FastAPI routes and the outbound httpx sheet fetches are exported over OTLP
and log records also get the active trace/span ids.
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar, Token
from uuid import uuid4

from fastapi import FastAPI, Request
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

CORRELATION_ID_HEADER = "x-request-id"

TRACING_ENV = "ENABLE_TELEMETRY"
LOG_LEVEL_ENV = "DASHBOARD_LOG_LEVEL"
OTLP_ENDPOINT_ENV = "OTEL_EXPORTER_OTLP_ENDPOINT"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318/v1/traces"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(service_name)s %(request_id)s %(trace_id)s %(span_id)s"

_request_id: ContextVar[str | None] = ContextVar("dashboard_request_id", default=None)
_logging_installed = False
_tracer_installed = False


def setup_telemetry(app: FastAPI, service_name: str) -> None:
    """Install JSON logging and, when `ENABLE_TELEMETRY` is truthy, OTLP tracing for `app`."""

    tracing = os.getenv(TRACING_ENV, "false").strip().lower() in {"1", "true", "yes", "on"}
    service_name = os.getenv("OTEL_SERVICE_NAME", service_name)

    _install_json_logging(service_name, tracing)
    if tracing:
        _install_tracer(service_name)
        FastAPIInstrumentor.instrument_app(app)


def ensure_request_id(request: Request) -> str:
    """Reuse the caller's x-request-id when present, otherwise assign a new UUID4."""

    request_id = request.headers.get(CORRELATION_ID_HEADER) or getattr(request.state, "request_id", None)
    if not request_id:
        request_id = str(uuid4())
    request.state.request_id = request_id
    return request_id


def bind_request_context(request_id: str | None) -> Token:
    return _request_id.set(request_id)


def reset_request_context(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> str | None:
    """Request id bound to the request being served, if any."""
    return _request_id.get()


def _install_json_logging(service_name: str, tracing: bool) -> None:
    global _logging_installed
    if _logging_installed:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    handler.addFilter(_LogContextFilter(service_name, tracing))
    logging.basicConfig(level=os.getenv(LOG_LEVEL_ENV, "INFO").upper(), handlers=[handler], force=True)
    _logging_installed = True


def _install_tracer(service_name: str) -> None:
    # Sheet fetches are instrumented globally, so this must only run once per process.
    global _tracer_installed
    if _tracer_installed:
        return

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=os.getenv(OTLP_ENDPOINT_ENV, DEFAULT_OTLP_ENDPOINT)))
    )
    trace.set_tracer_provider(provider)
    HTTPXClientInstrumentor().instrument()
    LoggingInstrumentor().instrument(set_logging_format=False)
    _tracer_installed = True


class _LogContextFilter(logging.Filter):
    """Stamps every record with the fields LOG_FORMAT expects."""

    def __init__(self, service_name: str, tracing: bool) -> None:
        super().__init__()
        self._service_name = service_name
        self._tracing = tracing

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self._service_name
        record.request_id = _request_id.get()
        record.trace_id = None
        record.span_id = None

        if self._tracing:
            span_context = trace.get_current_span().get_span_context()
            if span_context.is_valid:
                record.trace_id = format(span_context.trace_id, "032x")
                record.span_id = format(span_context.span_id, "016x")
        return True
