"""
Gauge Sink Module

Process-wide gauge registry with set_gauge(name, value, labels) semantics.
Label keys are open-ended, so the sink is plugged into prometheus_client as a
custom collector instead of using the fixed-label Gauge class.
"""

from typing import Dict, List, Optional, Tuple, Union, Mapping, Sequence, Iterator
import logging
import threading

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import Metric

logger = logging.getLogger(__name__)

Labels = Union[Mapping[str, str], Sequence[Tuple[str, str]]]


class MetricSink:
    """
    Thread-safe store of gauge samples keyed by metric name and label set.

    Setting a gauge replaces the previous sample with the same label set. Labels
    are applied in the order given; when a key repeats, the last value wins and
    a warning is logged once per metric and key.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self._lock = threading.Lock()
        self._gauges: Dict[str, Dict[Tuple[Tuple[str, str], ...], Tuple[Dict[str, str], float]]] = {}
        self._help: Dict[str, str] = {}
        self._warned: set = set()
        self.registry = registry if registry is not None else CollectorRegistry()
        self.registry.register(self)

    def describe(self) -> List[Metric]:
        # Names are dynamic; skip the registry's duplicate-name check
        return []

    def describe_gauge(self, name: str, documentation: str) -> None:
        """Attach HELP text to a gauge name."""
        with self._lock:
            self._help[name] = documentation

    def _resolve_labels(self, name: str, labels: Labels) -> Dict[str, str]:
        pairs = labels.items() if isinstance(labels, Mapping) else labels
        resolved: Dict[str, str] = {}
        for key, value in pairs:
            if key in resolved and (name, key) not in self._warned:
                self._warned.add((name, key))
                logger.warning(f"Label '{key}' set more than once on {name}, "
                               f"keeping the last value")
            resolved[key] = str(value)
        return resolved

    def set_gauge(self, name: str, value: float, labels: Labels = ()) -> None:
        """Set the gauge `name` for the given label set to `value`."""
        with self._lock:
            resolved = self._resolve_labels(name, labels)
            key = tuple(sorted(resolved.items()))
            self._gauges.setdefault(name, {})[key] = (resolved, float(value))

    def get(self, name: str, labels: Labels = ()) -> Optional[float]:
        """Return the current value of a gauge sample, or None if it was never set."""
        pairs = labels.items() if isinstance(labels, Mapping) else labels
        key = tuple(sorted(dict((k, str(v)) for k, v in pairs).items()))
        with self._lock:
            sample = self._gauges.get(name, {}).get(key)
        return sample[1] if sample else None

    def samples(self, name: str) -> List[Tuple[Dict[str, str], float]]:
        """All (labels, value) samples of a gauge, in first-emission order."""
        with self._lock:
            return [(dict(labels), value) for labels, value in self._gauges.get(name, {}).values()]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._gauges.keys())

    def clear(self) -> None:
        with self._lock:
            self._gauges.clear()

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            snapshot = [(name, self._help.get(name, name), list(series.values()))
                        for name, series in self._gauges.items()]

        for name, documentation, series in snapshot:
            metric = Metric(name, documentation, 'gauge')
            for labels, value in series:
                metric.add_sample(name, labels, value)
            yield metric

    def render(self) -> bytes:
        """Render the whole registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
