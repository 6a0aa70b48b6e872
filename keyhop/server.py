from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Optional

from flask import Flask, g, request

from keyhop.http_routes import register_routes
from keyhop.metrics import ERROR_COUNT, REQUEST_COUNT, REQUEST_LATENCY
from keyhop.observability import get_current_trace_context, init_otel
from keyhop.snapshot import SnapshotStore

logger = logging.getLogger("keyhop")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - logging
        base = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": int(record.created * 1000),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            base.update(record.extra)
        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)
        return json.dumps(base, separators=(",", ":"), default=str)


def configure_logging(level: Optional[int]) -> None:
    """Attach a single handler to the ``keyhop`` logger.

    ``None`` disables keyhop logging entirely.
    """
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    if level is None:
        logger.setLevel(logging.CRITICAL + 1)
        logger.addHandler(logging.NullHandler())
        return

    logger.setLevel(level)
    log_json = os.getenv("HOP_LOG_JSON", "1") == "1"
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if log_json else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)


def create_app(store: SnapshotStore) -> Flask:
    app = Flask(__name__)
    app.config["HOP_SNAPSHOT_STORE"] = store
    init_otel(app)

    @app.before_request
    def start_request():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_start = time.time()
        otel_context = get_current_trace_context()
        if otel_context:
            g.otel_trace_id = otel_context.get("trace_id")
            g.otel_span_id = otel_context.get("span_id")

    @app.after_request
    def finalize_request(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers["X-Request-ID"] = request_id
        route = request.path
        method = request.method
        status = str(response.status_code)
        duration = time.time() - getattr(g, "request_start", time.time())
        REQUEST_COUNT.labels(route, method, status).inc()
        REQUEST_LATENCY.labels(route, method).observe(duration)
        if response.status_code >= 500:
            ERROR_COUNT.labels(route, method, status).inc()

        fields = {
            "request_id": request_id,
            "route": route,
            "method": method,
            "status": response.status_code,
            "latency_ms": int(duration * 1000),
        }
        otel_trace_id = getattr(g, "otel_trace_id", None)
        if otel_trace_id:
            fields["otel_trace_id"] = otel_trace_id
            fields["otel_span_id"] = getattr(g, "otel_span_id", None)
        logger.info("request", extra={"extra": fields})
        return response

    register_routes(app)
    return app
