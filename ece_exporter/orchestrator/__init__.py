"""
Orchestrator module initialization.
"""

from .errors import (
    OrchestratorError,
    Unauthorized,
    Forbidden,
    NotFound,
    UnknownStatus,
    TransportError,
    DecodeError
)

from .models import (
    KeyValue,
    Status,
    Memory,
    Capacity,
    PlansInfo,
    Instance,
    Allocator,
    Zone,
    AllocatorsRoot,
    Proxy,
    ProxiesRoot
)

from .client import (
    OrchestratorClient,
    ALLOCATORS_PATH,
    PROXIES_PATH
)

__all__ = [
    'OrchestratorError',
    'Unauthorized',
    'Forbidden',
    'NotFound',
    'UnknownStatus',
    'TransportError',
    'DecodeError',
    'KeyValue',
    'Status',
    'Memory',
    'Capacity',
    'PlansInfo',
    'Instance',
    'Allocator',
    'Zone',
    'AllocatorsRoot',
    'Proxy',
    'ProxiesRoot',
    'OrchestratorClient',
    'ALLOCATORS_PATH',
    'PROXIES_PATH'
]
