"""
ECE Exporter Entry Point

Resolves the settings, builds the orchestrator client, the collector and the
gauge sink, and serves them through the Flask application.
"""

from typing import List, Optional
import logging
import sys

from .config import ConfigError, Settings, parse_settings
from .logging_utils import setup_logging
from .metrics import InventoryCollector, MetricSink
from .orchestrator import OrchestratorClient
from .web import create_app

logger = logging.getLogger(__name__)


def build_app(settings: Settings):
    """Wire client, sink and collector into a Flask app."""
    client = OrchestratorClient(
        base_url=settings.url,
        timeout=settings.timeout,
        api_key=settings.apikey,
        username=settings.username,
        password=settings.password,
        verify_tls=settings.verify_tls
    )
    sink = MetricSink()
    collector = InventoryCollector(
        client=client,
        sink=sink,
        eru_cost=settings.eru_cost,
        namespace=settings.namespace
    )
    return create_app(collector, sink)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = parse_settings(argv)
    except ConfigError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.log_level, settings.log_json)
    if not settings.verify_tls:
        logger.warning("TLS certificate verification is disabled")

    app = build_app(settings)
    logger.info(f"Listening on {settings.host}:{settings.port}")
    try:
        app.run(host=settings.host, port=settings.port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    return 0


if __name__ == '__main__':
    sys.exit(main())
