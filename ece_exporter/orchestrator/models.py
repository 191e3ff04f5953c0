"""
Inventory Models Module

Immutable snapshots of the orchestrator inventory. They are decoded fresh from
the API payload on every scrape and discarded once the metrics are emitted.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .errors import DecodeError


def _require(data: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"{where}: expected object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise DecodeError(f"{where}: missing field '{key}'")
    return _check(data[key], key, kind, where)


def _optional(data: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"{where}: expected object, got {type(data).__name__}")
    value = data.get(key)
    if value is None:
        return None
    return _check(value, key, kind, where)


def _check(value: Any, key: str, kind: type, where: str) -> Any:
    # bool is a subclass of int, so it has to be ruled out explicitly
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"{where}: field '{key}' must be an integer")
        if value < 0:
            raise DecodeError(f"{where}: field '{key}' must be unsigned, got {value}")
        return value
    if not isinstance(value, kind):
        raise DecodeError(f"{where}: field '{key}' must be {kind.__name__}, "
                          f"got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class KeyValue:
    """A free-form metadata tag attached to an allocator."""
    key: str
    value: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KeyValue':
        return cls(
            key=_require(data, 'key', str, 'metadata'),
            value=_require(data, 'value', str, 'metadata')
        )


@dataclass(frozen=True)
class Status:
    connected: bool
    healthy: bool
    maintenance_mode: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Status':
        return cls(
            connected=_require(data, 'connected', bool, 'status'),
            healthy=_require(data, 'healthy', bool, 'status'),
            maintenance_mode=_require(data, 'maintenance_mode', bool, 'status')
        )


@dataclass(frozen=True)
class Memory:
    """Byte counts. used <= total is not enforced."""
    total: int
    used: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Memory':
        return cls(
            total=_require(data, 'total', int, 'memory'),
            used=_require(data, 'used', int, 'memory')
        )


@dataclass(frozen=True)
class Capacity:
    memory: Memory

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Capacity':
        return cls(memory=Memory.from_dict(_require(data, 'memory', dict, 'capacity')))


@dataclass(frozen=True)
class PlansInfo:
    """A pending or active configuration change on an instance."""
    pending: bool
    version: Optional[str] = None
    zone_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlansInfo':
        return cls(
            pending=_require(data, 'pending', bool, 'plans_info'),
            version=_optional(data, 'version', str, 'plans_info'),
            zone_count=_optional(data, 'zone_count', int, 'plans_info')
        )


@dataclass(frozen=True)
class Instance:
    """A hosted workload running on an allocator."""
    cluster_type: str
    cluster_id: str
    instance_name: str
    node_memory: int
    instance_configuration_id: str
    cluster_name: Optional[str] = None
    healthy: Optional[bool] = None
    cluster_healthy: Optional[bool] = None
    moving: Optional[bool] = None
    deployment_id: Optional[str] = None
    plans_info: Optional[PlansInfo] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Instance':
        where = 'instance'
        plans_info = _optional(data, 'plans_info', dict, where)
        return cls(
            cluster_type=_require(data, 'cluster_type', str, where),
            cluster_id=_require(data, 'cluster_id', str, where),
            instance_name=_require(data, 'instance_name', str, where),
            node_memory=_require(data, 'node_memory', int, where),
            instance_configuration_id=_require(data, 'instance_configuration_id', str, where),
            cluster_name=_optional(data, 'cluster_name', str, where),
            healthy=_optional(data, 'healthy', bool, where),
            cluster_healthy=_optional(data, 'cluster_healthy', bool, where),
            moving=_optional(data, 'moving', bool, where),
            deployment_id=_optional(data, 'deployment_id', str, where),
            plans_info=PlansInfo.from_dict(plans_info) if plans_info is not None else None
        )


@dataclass(frozen=True)
class Allocator:
    """A host in the orchestrator inventory running zero or more instances."""
    allocator_id: str
    zone_id: str
    host_ip: str
    public_hostname: str
    status: Status
    capacity: Capacity
    metadata: List[KeyValue] = field(default_factory=list)
    instances: List[Instance] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Allocator':
        where = 'allocator'
        metadata = _optional(data, 'metadata', list, where)
        instances = _optional(data, 'instances', list, where)
        return cls(
            allocator_id=_require(data, 'allocator_id', str, where),
            zone_id=_require(data, 'zone_id', str, where),
            host_ip=_require(data, 'host_ip', str, where),
            public_hostname=_require(data, 'public_hostname', str, where),
            status=Status.from_dict(_require(data, 'status', dict, where)),
            capacity=Capacity.from_dict(_require(data, 'capacity', dict, where)),
            metadata=[KeyValue.from_dict(tag) for tag in metadata or []],
            instances=[Instance.from_dict(inst) for inst in instances or []]
        )


@dataclass(frozen=True)
class Zone:
    zone_id: str
    allocators: List[Allocator] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Zone':
        return cls(
            zone_id=_require(data, 'zone_id', str, 'zone'),
            allocators=[Allocator.from_dict(a)
                        for a in _require(data, 'allocators', list, 'zone')]
        )


@dataclass(frozen=True)
class AllocatorsRoot:
    """Payload of GET api/v1/platform/infrastructure/allocators."""
    zones: List[Zone] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AllocatorsRoot':
        return cls(zones=[Zone.from_dict(z) for z in _require(data, 'zones', list, 'root')])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Proxy:
    """A routing node. Proxies carry their zone flat, not nested under a Zone."""
    proxy_id: str
    public_hostname: str
    healthy: bool
    zone: str
    proxy_ip: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Proxy':
        where = 'proxy'
        return cls(
            proxy_id=_require(data, 'proxy_id', str, where),
            public_hostname=_require(data, 'public_hostname', str, where),
            healthy=_require(data, 'healthy', bool, where),
            zone=_require(data, 'zone', str, where),
            proxy_ip=_optional(data, 'proxy_ip', str, where)
        )


@dataclass(frozen=True)
class ProxiesRoot:
    """Payload of GET api/v1/platform/infrastructure/proxies."""
    proxies_count: int
    proxies: List[Proxy] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProxiesRoot':
        return cls(
            proxies_count=_require(data, 'proxies_count', int, 'root'),
            proxies=[Proxy.from_dict(p) for p in _require(data, 'proxies', list, 'root')]
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
