"""
Metrics module initialization.
"""

from .sink import MetricSink

from .collector import (
    InventoryCollector,
    InstanceLabels,
    seconds_since_month_start,
    cents_per_gb_current_month,
    instance_monthly_cost,
    DEFAULT_ERU_COST
)

__all__ = [
    'MetricSink',
    'InventoryCollector',
    'InstanceLabels',
    'seconds_since_month_start',
    'cents_per_gb_current_month',
    'instance_monthly_cost',
    'DEFAULT_ERU_COST'
]
