"""
Web Application Module

This module provides the Flask application that exposes the collected
inventory in the Prometheus text format, plus health and info endpoints.
"""

from flask import Flask, Response, jsonify, request, g
import logging
import time

from prometheus_client import Counter, Histogram, CONTENT_TYPE_LATEST

from .. import __title__, __version__, __description__
from ..metrics import InventoryCollector, MetricSink
from ..orchestrator import OrchestratorError

logger = logging.getLogger(__name__)


def create_app(collector: InventoryCollector, sink: MetricSink) -> Flask:
    """
    Create and configure the Flask application.

    Every GET /metrics runs one collection against the orchestrator, sets the
    `<namespace>_cluster_up` gauge to 1 or 0, and renders the whole registry.
    """
    app = Flask(__name__)

    up_metric = collector.metric_name('cluster_up')
    sink.describe_gauge(up_metric, "Whether the last scrape of the orchestrator succeeded")

    request_count = Counter(
        'http_requests_total',
        'Total HTTP requests served by the exporter',
        ['method', 'path', 'status'],
        registry=sink.registry
    )
    request_latency = Histogram(
        'http_requests_duration_seconds',
        'Latency of HTTP requests served by the exporter',
        ['method', 'path', 'status'],
        registry=sink.registry
    )

    @app.before_request
    def start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def track_metrics(response):
        # Unmatched paths are collapsed so scanners can't blow up cardinality
        path = request.url_rule.rule if request.url_rule else 'unmatched'
        status = str(response.status_code)
        elapsed = time.perf_counter() - g.get('request_start', time.perf_counter())
        request_count.labels(method=request.method, path=path, status=status).inc()
        request_latency.labels(method=request.method, path=path, status=status).observe(elapsed)
        return response

    @app.route('/metrics')
    def metrics():
        logger.info('{"fn": "metrics", "method": "get"}')
        try:
            collector.collect()
            sink.set_gauge(up_metric, 1)
        except OrchestratorError as e:
            logger.error(f"Scrape of the orchestrator failed: {e}")
            sink.set_gauge(up_metric, 0)
        return Response(sink.render(), content_type=CONTENT_TYPE_LATEST)

    @app.route('/health')
    def health():
        logger.info('{"fn": "health", "method": "get"}')
        return jsonify({'msg': 'Healthy'})

    @app.route('/')
    def root():
        logger.info('{"fn": "root", "method": "get"}')
        return jsonify({
            'version': __version__,
            'name': __title__,
            'description': __description__
        })

    @app.errorhandler(404)
    def handler_404(error):
        logger.info(f'{{"fn": "handler_404", "method": "{request.method.lower()}", '
                    f'"path": "{request.full_path.rstrip("?")}"}}')
        return jsonify({'error_code': 404, 'message': 'HTTP 404 Not Found'}), 404

    return app
