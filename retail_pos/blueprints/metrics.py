"""
Prometheus metrics blueprint.

Exposes /metrics with request metrics per endpoint and POS counters
(completed sales, revenue, units, rejected checkouts). Restrict this endpoint
to the monitoring network.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess,
)

metrics_bp = Blueprint('metrics', __name__)

# Endpoints left out of the request metrics
UNTRACKED_ENDPOINTS = {'metrics.metrics', 'static'}

# gunicorn workers share counters through PROMETHEUS_MULTIPROC_DIR
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    scrape_registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(scrape_registry)
    _owner = None
else:
    scrape_registry = REGISTRY
    _owner = REGISTRY

request_count = Counter(
    'pos_http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status'],
    registry=_owner
)

request_latency = Histogram(
    'pos_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_owner,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

requests_in_progress = Gauge(
    'pos_http_requests_in_flight',
    'Requests being handled right now',
    registry=_owner
)

sales_completed = Counter(
    'pos_sales_total',
    'Completed sales',
    registry=_owner
)

sales_revenue = Counter(
    'pos_sales_revenue_total',
    'Revenue of completed sales, tax included',
    registry=_owner
)

units_sold = Counter(
    'pos_units_sold_total',
    'Units sold across all completed sales',
    registry=_owner
)

checkouts_rejected = Counter(
    'pos_checkouts_rejected_total',
    'Checkouts rejected by validation',
    registry=_owner
)


def record_sale(sale):
    """Count a completed sale, its revenue and its units."""
    sales_completed.inc()
    sales_revenue.inc(float(sale.total))
    units_sold.inc(sum(line.quantity for line in sale.items))


def record_rejected_checkout():
    checkouts_rejected.inc()


def _tracked() -> bool:
    return (request.endpoint or 'unknown') not in UNTRACKED_ENDPOINTS


def setup_metrics_instrumentation(app):
    """
    Time each request and count it by endpoint and status.

    Called from the app factory before the other request hooks.
    """

    @app.before_request
    def start_request_timer():
        if _tracked():
            g.metrics_started_at = time.perf_counter()
            requests_in_progress.inc()

    @app.after_request
    def observe_request(response):
        started_at = g.pop('metrics_started_at', None)
        if started_at is None:
            return response

        endpoint = request.endpoint or 'unknown'
        try:
            request_latency.labels(request.method, endpoint).observe(time.perf_counter() - started_at)
            request_count.labels(request.method, endpoint, response.status_code).inc()
        except ValueError as e:
            app.logger.warning(f"Metrics not recorded for {endpoint}: {e}")
        finally:
            requests_in_progress.dec()
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text format. Not authenticated."""
    return Response(generate_latest(scrape_registry), mimetype=CONTENT_TYPE_LATEST)
