"""
Inventory Collection Module

Fetches the orchestrator inventory on demand and flattens the
zone -> allocator -> instance -> plan graph into gauge samples on a MetricSink.
Nothing is kept between scrapes.
"""

from datetime import datetime, timezone, timedelta
from typing import Callable, List, Optional, Tuple
import logging

from ..orchestrator import OrchestratorClient, AllocatorsRoot, ProxiesRoot, Allocator, Instance
from .sink import MetricSink

logger = logging.getLogger(__name__)

# Fixed 365-day year used by the cost accrual model
SECONDS_PER_YEAR = 31536000.0
# Instance cost is priced per 64 GB of node memory
GB_PER_COST_UNIT = 64.0
DEFAULT_ERU_COST = 6000
NULL = "null"

METRIC_HELP = {
    'allocator_info': "Allocator status, value is always 1",
    'allocator_memory_used': "Memory used on the allocator in bytes",
    'allocator_memory_total': "Memory capacity of the allocator in bytes",
    'allocator_instances_total': "Number of instances running on the allocator",
    'allocator_instance_info': "Instance status, value is always 1",
    'allocator_instance_node_memory': "Instance node memory in MB",
    'allocator_instance_monthly_cost': "Instance cost accrued since the start of the month in cents",
    'allocator_instance_plan': "Instance plan information, value is always 1",
    'proxy_info': "Proxy status, value is always 1",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def seconds_since_month_start(now: datetime) -> float:
    """Whole seconds elapsed since 00:00:00 UTC on the first day of now's month."""
    now = now.astimezone(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return float((now - month_start) // timedelta(seconds=1))


def cents_per_gb_current_month(eru_cost: float, seconds: float) -> float:
    return (eru_cost * 100.0 / SECONDS_PER_YEAR) * seconds


def instance_monthly_cost(node_memory: int, cents_per_gb: float) -> float:
    cluster_size_gb = node_memory / 1024.0
    return (cluster_size_gb / GB_PER_COST_UNIT) * cents_per_gb


def bool_label(value: bool) -> str:
    return "true" if value else "false"


class InstanceLabels:
    """Label values of an instance with the placeholder policy for absent fields applied."""

    def __init__(self, instance: Instance):
        self.name = instance.cluster_name if instance.cluster_name is not None else NULL
        self.cluster_type = instance.cluster_type
        self.cluster_id = instance.cluster_id
        self.configuration_id = instance.instance_configuration_id
        self.deployment_id = instance.deployment_id if instance.deployment_id is not None else NULL
        self.healthy = bool_label(instance.healthy or False)
        self.moving = bool_label(instance.moving or False)
        self.cluster_healthy = (bool_label(instance.cluster_healthy)
                                if instance.cluster_healthy is not None else NULL)


class InventoryCollector:
    """
    Projects the orchestrator inventory into gauges.

    collect() runs the allocator step and then the proxy step. A failure in
    either step propagates unchanged and skips the rest; gauges already set in
    this scrape are left in place.
    """

    def __init__(self, client: OrchestratorClient, sink: MetricSink,
                 eru_cost: float = DEFAULT_ERU_COST,
                 namespace: str = "ece",
                 clock: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.sink = sink
        self.eru_cost = eru_cost
        self.namespace = namespace
        self.clock = clock or utc_now

        for name, documentation in METRIC_HELP.items():
            self.sink.describe_gauge(self.metric_name(name), documentation)

    def metric_name(self, name: str) -> str:
        return f"{self.namespace}_{name}" if self.namespace else name

    def _set(self, name: str, value: float, labels: List[Tuple[str, str]]) -> None:
        self.sink.set_gauge(self.metric_name(name), value, labels)

    def collect(self) -> None:
        self.collect_allocators()
        self.collect_proxies()

    def collect_allocators(self) -> None:
        """Fetch allocators and emit allocator, instance and plan gauges."""
        root = self.client.fetch_allocators()
        self.project_allocators(root, self.clock())

    def collect_proxies(self) -> None:
        """Fetch proxies and emit one proxy_info gauge per proxy."""
        root = self.client.fetch_proxies()
        self.project_proxies(root)

    def project_allocators(self, root: AllocatorsRoot, now: datetime) -> None:
        seconds = seconds_since_month_start(now)
        logger.debug(f"Seconds in month: {seconds}")
        cents_per_gb = cents_per_gb_current_month(self.eru_cost, seconds)
        logger.debug(f"Cents per GB for current month: {cents_per_gb}")

        for zone in root.zones:
            logger.debug(f"Working in zone: {zone.zone_id}")
            for allocator in zone.allocators:
                self._project_allocator(zone.zone_id, allocator, cents_per_gb)

    def _project_allocator(self, zone_id: str, allocator: Allocator, cents_per_gb: float) -> None:
        logger.debug(f"Working in allocator: {allocator.public_hostname}")
        hostname = allocator.public_hostname
        tags = [(tag.key, tag.value) for tag in allocator.metadata]

        self._set('allocator_info', 1, [
            ('zone', zone_id),
            ('ip', hostname),
            ('connected', bool_label(allocator.status.connected)),
            ('healthy', bool_label(allocator.status.healthy)),
            ('maintenance', bool_label(allocator.status.maintenance_mode)),
        ] + tags)

        labels = [('zone', zone_id), ('ip', hostname)] + tags
        self._set('allocator_memory_used', allocator.capacity.memory.used, labels)
        self._set('allocator_memory_total', allocator.capacity.memory.total, labels)
        self._set('allocator_instances_total', len(allocator.instances), labels)

        for instance in allocator.instances:
            self._project_instance(zone_id, hostname, instance, tags, cents_per_gb)

    def _project_instance(self, zone_id: str, hostname: str, instance: Instance,
                          tags: List[Tuple[str, str]], cents_per_gb: float) -> None:
        resolved = InstanceLabels(instance)
        logger.debug(f"Working in instance: {resolved.name}")

        self._set('allocator_instance_info', 1, [
            ('zone', zone_id),
            ('ip', hostname),
            ('name', resolved.name),
            ('cluster_type', resolved.cluster_type),
            ('cluster_id', resolved.cluster_id),
            ('configuration_id', resolved.configuration_id),
            ('deployment_id', resolved.deployment_id),
            ('healthy', resolved.healthy),
            ('cluster_healthy', resolved.cluster_healthy),
            ('moving', resolved.moving),
        ] + tags)

        labels = [
            ('zone', zone_id),
            ('ip', hostname),
            ('name', resolved.name),
            ('cluster_type', resolved.cluster_type),
            ('cluster_id', resolved.cluster_id),
        ] + tags
        self._set('allocator_instance_node_memory', instance.node_memory, labels)
        self._set('allocator_instance_monthly_cost',
                  instance_monthly_cost(instance.node_memory, cents_per_gb), labels)

        plans_info = instance.plans_info
        if plans_info is None:
            return

        self._set('allocator_instance_plan', 1, [
            ('zone', zone_id),
            ('allocator', hostname),
            ('name', resolved.name),
            ('pending', bool_label(plans_info.pending)),
            ('version', plans_info.version if plans_info.version is not None else "0"),
            ('cluster_type', resolved.cluster_type),
            ('zone_count', str(plans_info.zone_count if plans_info.zone_count is not None else 0)),
        ] + tags)

    def project_proxies(self, root: ProxiesRoot) -> None:
        for proxy in root.proxies:
            logger.debug(f"Working on proxy: {proxy.proxy_id}")
            self._set('proxy_info', 1, [
                ('zone', proxy.zone),
                ('hostname', proxy.public_hostname),
                ('proxy_id', proxy.proxy_id),
                ('proxy_ip', proxy.proxy_ip if proxy.proxy_ip is not None else NULL),
                ('healthy', bool_label(proxy.healthy)),
            ])
