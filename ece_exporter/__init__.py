"""
ECE exporter package initialization.
"""

__title__ = 'ece-exporter'
__version__ = '0.3.0'
__description__ = 'Prometheus exporter for Elastic Cloud Enterprise allocator and proxy inventory'

from .orchestrator import (
    OrchestratorClient,
    OrchestratorError,
    AllocatorsRoot,
    ProxiesRoot
)

from .metrics import (
    MetricSink,
    InventoryCollector
)

__all__ = [
    'OrchestratorClient',
    'OrchestratorError',
    'AllocatorsRoot',
    'ProxiesRoot',
    'MetricSink',
    'InventoryCollector'
]
