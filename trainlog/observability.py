"""Logging setup, request logging and Prometheus metrics for the API."""
import logging
import os
import time
import uuid

from fastapi import Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

log = logging.getLogger("trainlog.requests")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Request latency",
    ["method", "path"],
)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _path_label(request: Request) -> str:
    # label by route template so /api/sessions/1 and /api/sessions/2 share a series
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


async def observe_request(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    label = _path_label(request)
    REQUEST_COUNT.labels(method=request.method, path=label, status=str(response.status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, path=label).observe(elapsed)

    response.headers["X-Request-ID"] = req_id
    log.info("rid=%s %s %s -> %s in %.1fms",
             req_id, request.method, request.url.path, response.status_code, elapsed * 1000)
    return response


def metrics_response() -> PlainTextResponse:
    return PlainTextResponse(generate_latest().decode("utf-8"), media_type=CONTENT_TYPE_LATEST)
