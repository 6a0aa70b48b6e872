from __future__ import annotations

import logging
import os

from flask import Response, current_app, jsonify, request
from jinja2 import TemplateError
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from keyhop.errors import HopError
from keyhop.executor import Body, run_route
from keyhop.metrics import METRICS_REGISTRY, RESOLUTION_COUNT
from keyhop.observability import get_tracer, record_error
from keyhop.resolver import Resolved, resolve_hop
from keyhop.snapshot import Snapshot, SnapshotStore
from keyhop.templating import render_index, render_list, render_opensearch, render_redirect

logger = logging.getLogger("keyhop.http")

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
OPENSEARCH_CONTENT_TYPE = "application/opensearchdescription+xml"


def _snapshot() -> Snapshot:
    store: SnapshotStore = current_app.config["HOP_SNAPSHOT_STORE"]
    return store.current()


def _count_outcome(span, outcome: str) -> None:
    span.set_attribute("keyhop.outcome", outcome)
    RESOLUTION_COUNT.labels(outcome).inc()


def register_routes(app) -> None:
    @app.get("/")
    def index():
        snapshot = _snapshot()
        return Response(render_index(snapshot.public_address), content_type=HTML_CONTENT_TYPE)

    @app.get("/bunbunsearch.xml")
    def opensearch():
        snapshot = _snapshot()
        return Response(render_opensearch(snapshot.public_address), content_type=OPENSEARCH_CONTENT_TYPE)

    @app.get("/ls")
    def list_routes():
        snapshot = _snapshot()
        return Response(render_list(snapshot.groups), content_type=HTML_CONTENT_TYPE)

    @app.get("/hop")
    def hop():
        query = request.args.get("to")
        if query is None:
            return Response("missing query parameter 'to'\n", status=400, mimetype="text/plain")

        # One snapshot for the whole request, even if a reload lands meanwhile.
        snapshot = _snapshot()
        with get_tracer().start_as_current_span("keyhop.hop") as span:
            resolution = resolve_hop(query, snapshot.routes, snapshot.default_route)
            if not isinstance(resolution, Resolved):
                _count_outcome(span, "unresolved")
                return Response("not found", status=404, mimetype="text/plain")

            route = resolution.route
            span.set_attribute("keyhop.keyword", resolution.keyword or "")
            span.set_attribute("keyhop.route.kind", route.kind.value)
            try:
                action = run_route(route, resolution.args)
                if isinstance(action, Body):
                    response = Response(action.text, status=200, mimetype="text/plain")
                else:
                    location = render_redirect(action.target, resolution.args)
                    response = Response(status=302, headers={"Location": location})
            except (HopError, OSError, TemplateError, ValueError) as exc:
                record_error(span, exc)
                _count_outcome(span, "error")
                logger.error(
                    "Failed to redirect user",
                    extra={"extra": {"route": str(route), "error": str(exc), "error_type": type(exc).__name__}},
                )
                return Response("Something went wrong :(\n", status=500, mimetype="text/plain")

            _count_outcome(span, route.kind.value)
            return response

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "keyhop"}

    @app.get("/metrics")
    def metrics():
        if os.getenv("HOP_METRICS_ENABLED", "1") != "1":
            return jsonify({"status": "disabled", "service": "keyhop"}), 503
        return Response(generate_latest(METRICS_REGISTRY), mimetype=CONTENT_TYPE_LATEST)
