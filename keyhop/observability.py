from __future__ import annotations

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
try:
    from opentelemetry.instrumentation.flask import FlaskInstrumentor
except ImportError:  # Optional dependency
    FlaskInstrumentor = None
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode


logger = logging.getLogger("keyhop.observability")

# When set, keyhop spans go here instead of the process-wide provider.
_tracer_provider: Optional[trace.TracerProvider] = None


def otel_enabled() -> bool:
    return os.getenv("HOP_OTEL_ENABLED", "0") == "1"


def set_tracer_provider(provider: Optional[trace.TracerProvider]) -> None:
    global _tracer_provider
    _tracer_provider = provider


def get_tracer() -> trace.Tracer:
    """Tracer for keyhop's own spans.

    Without ``init_otel`` this is the API's no-op tracer, so callers can open
    spans unconditionally.
    """
    return trace.get_tracer("keyhop", tracer_provider=_tracer_provider)


def record_error(span: Span, exc: BaseException) -> None:
    """Mark a span failed for an error that is handled rather than raised."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


def init_otel(app) -> None:
    if not otel_enabled():
        return

    service_name = os.getenv("HOP_SERVICE_NAME", "keyhop")
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    endpoint = os.getenv("HOP_OTEL_EXPORTER_OTLP_ENDPOINT", "http://127.0.0.1:4318/v1/traces")
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)
    set_tracer_provider(provider)
    logger.info("OpenTelemetry enabled", extra={"extra": {"endpoint": endpoint, "service": service_name}})

    if FlaskInstrumentor is None:
        logger.warning("OpenTelemetry Flask instrumentation not installed; /hop spans have no request parent")
        return
    FlaskInstrumentor().instrument_app(app)


def get_current_trace_context() -> dict[str, str] | None:
    """Trace and span ids of the active span, for log correlation."""
    if not otel_enabled():
        return None

    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return None
    return {
        "trace_id": f"{ctx.trace_id:032x}",
        "span_id": f"{ctx.span_id:016x}",
    }
