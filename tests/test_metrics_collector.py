from datetime import datetime, timezone, timedelta

import pytest

from ece_exporter.metrics import (
    InventoryCollector,
    MetricSink,
    seconds_since_month_start,
    cents_per_gb_current_month,
    instance_monthly_cost
)
from ece_exporter.orchestrator import AllocatorsRoot, ProxiesRoot, NotFound, Forbidden
from tests.conftest import FakeClient

MONTH_START = datetime(2026, 10, 1, tzinfo=timezone.utc)
ONE_HOUR_IN = MONTH_START + timedelta(hours=1)


@pytest.fixture
def client(allocators_payload, proxies_payload):
    return FakeClient(
        allocators=AllocatorsRoot.from_dict(allocators_payload),
        proxies=ProxiesRoot.from_dict(proxies_payload)
    )


def make_collector(client, now=ONE_HOUR_IN, namespace="ece"):
    sink = MetricSink()
    collector = InventoryCollector(client, sink, eru_cost=6000, namespace=namespace,
                                   clock=lambda: now)
    return collector, sink


class TestCostModel:
    """Linear accrual of cost over the calendar month."""

    def test_seconds_since_month_start(self):
        now = datetime(2026, 10, 2, 0, 0, 30, tzinfo=timezone.utc)
        assert seconds_since_month_start(now) == 86430

    def test_seconds_truncated_to_whole_seconds(self):
        now = datetime(2026, 10, 1, 0, 0, 5, 900000, tzinfo=timezone.utc)
        assert seconds_since_month_start(now) == 5

    def test_seconds_uses_utc_month(self):
        # 2026-11-01 01:00 at UTC+02:00 is still October in UTC
        now = datetime(2026, 11, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        assert seconds_since_month_start(now) == 30 * 86400 + 23 * 3600

    def test_zero_at_month_start(self):
        assert seconds_since_month_start(MONTH_START) == 0
        assert cents_per_gb_current_month(6000, 0) == 0

    def test_full_year_accrues_yearly_cost(self):
        assert cents_per_gb_current_month(6000, 31536000) == pytest.approx(600000)

    def test_one_unit_costs_the_unit_rate(self):
        assert instance_monthly_cost(65536, 100) == pytest.approx(100)

    def test_cost_is_monotonic_within_month(self):
        costs = [instance_monthly_cost(16384, cents_per_gb_current_month(6000, s))
                 for s in (0, 60, 3600, 86400, 30 * 86400)]
        assert costs == sorted(costs)


class TestAllocatorProjection:
    """Allocator, instance and plan gauges."""

    def test_one_tuple_per_allocator(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        for name in ('ece_allocator_info', 'ece_allocator_memory_used',
                     'ece_allocator_memory_total', 'ece_allocator_instances_total'):
            assert len(sink.samples(name)) == 2

    def test_one_tuple_per_instance(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        for name in ('ece_allocator_instance_info', 'ece_allocator_instance_node_memory',
                     'ece_allocator_instance_monthly_cost'):
            assert len(sink.samples(name)) == 2

    def test_allocator_info_labels(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        value = sink.get('ece_allocator_info', {
            'zone': 'ece-zone-1', 'ip': 'allocator-1.example.com', 'connected': 'true',
            'healthy': 'true', 'maintenance': 'false', 'rack': 'r1', 'env': 'prod'
        })
        assert value == 1
        value = sink.get('ece_allocator_info', {
            'zone': 'ece-zone-2', 'ip': 'allocator-2.example.com', 'connected': 'false',
            'healthy': 'false', 'maintenance': 'true'
        })
        assert value == 1

    def test_memory_and_instance_counts(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        labels = {'zone': 'ece-zone-1', 'ip': 'allocator-1.example.com', 'rack': 'r1', 'env': 'prod'}
        assert sink.get('ece_allocator_memory_used', labels) == 18432
        assert sink.get('ece_allocator_memory_total', labels) == 65536
        assert sink.get('ece_allocator_instances_total', labels) == 2

        labels = {'zone': 'ece-zone-2', 'ip': 'allocator-2.example.com'}
        assert sink.get('ece_allocator_instances_total', labels) == 0

    def test_instance_info_with_all_fields(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        labels = dict(sink.samples('ece_allocator_instance_info')[0][0])
        assert labels == {
            'zone': 'ece-zone-1', 'ip': 'allocator-1.example.com', 'name': 'logging',
            'cluster_type': 'elasticsearch', 'cluster_id': '3f8a2c',
            'configuration_id': 'data.default', 'deployment_id': 'd-42',
            'healthy': 'true', 'cluster_healthy': 'true', 'moving': 'false',
            'rack': 'r1', 'env': 'prod'
        }

    def test_absent_instance_fields_use_placeholders(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        labels = dict(sink.samples('ece_allocator_instance_info')[1][0])
        assert labels['name'] == 'null'
        assert labels['cluster_healthy'] == 'null'
        assert labels['deployment_id'] == 'null'
        assert labels['healthy'] == 'false'
        assert labels['moving'] == 'false'

    def test_plan_emitted_only_with_plans_info(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        plans = sink.samples('ece_allocator_instance_plan')
        assert len(plans) == 1
        labels, value = plans[0]
        assert value == 1
        assert labels == {
            'zone': 'ece-zone-1', 'allocator': 'allocator-1.example.com', 'name': 'logging',
            'pending': 'false', 'version': '7.17.9', 'cluster_type': 'elasticsearch',
            'zone_count': '2', 'rack': 'r1', 'env': 'prod'
        }

    def test_plan_defaults_for_version_and_zone_count(self, allocators_payload):
        instance = allocators_payload['zones'][0]['allocators'][0]['instances'][0]
        instance['plans_info'] = {'pending': True}
        collector, sink = make_collector(FakeClient(allocators=AllocatorsRoot.from_dict(allocators_payload)))
        collector.collect_allocators()

        labels, _ = sink.samples('ece_allocator_instance_plan')[0]
        assert labels['pending'] == 'true'
        assert labels['version'] == '0'
        assert labels['zone_count'] == '0'

    def test_node_memory_and_monthly_cost(self, client):
        collector, sink = make_collector(client, now=ONE_HOUR_IN)
        collector.collect_allocators()

        labels = {'zone': 'ece-zone-1', 'ip': 'allocator-1.example.com', 'name': 'logging',
                  'cluster_type': 'elasticsearch', 'cluster_id': '3f8a2c', 'rack': 'r1', 'env': 'prod'}
        assert sink.get('ece_allocator_instance_node_memory', labels) == 16384
        expected = (16.0 / 64.0) * (6000 * 100.0 / 31536000.0) * 3600
        assert sink.get('ece_allocator_instance_monthly_cost', labels) == pytest.approx(expected)

    def test_monthly_cost_zero_at_month_start(self, client):
        collector, sink = make_collector(client, now=MONTH_START)
        collector.collect_allocators()

        for _, value in sink.samples('ece_allocator_instance_monthly_cost'):
            assert value == 0

    def test_metadata_tags_on_every_derived_metric(self, client):
        collector, sink = make_collector(client)
        collector.collect_allocators()

        for name in sink.names():
            for labels, _ in sink.samples(name):
                if labels.get('zone') == 'ece-zone-1':
                    assert labels['rack'] == 'r1'
                    assert labels['env'] == 'prod'

    def test_metadata_tag_colliding_with_fixed_label_wins(self, allocators_payload):
        allocators_payload['zones'][1]['allocators'][0]['metadata'] = [{'key': 'zone', 'value': 'override'}]
        collector, sink = make_collector(FakeClient(allocators=AllocatorsRoot.from_dict(allocators_payload)))
        collector.collect_allocators()

        zones = [labels['zone'] for labels, _ in sink.samples('ece_allocator_info')]
        assert zones == ['ece-zone-1', 'override']

    def test_namespace_prefix(self, client):
        collector, sink = make_collector(client, namespace="")
        collector.collect_allocators()

        assert 'allocator_info' in sink.names()
        assert collector.metric_name('proxy_info') == 'proxy_info'


class TestProxyProjection:

    def test_proxy_info(self, client):
        collector, sink = make_collector(client)
        collector.collect_proxies()

        assert sink.samples('ece_proxy_info') == [
            ({'zone': 'ece-zone-1', 'hostname': 'proxy-1.example.com', 'proxy_id': 'proxy-a',
              'proxy_ip': '192.168.44.20', 'healthy': 'true'}, 1.0),
            ({'zone': 'ece-zone-2', 'hostname': 'proxy-2.example.com', 'proxy_id': 'proxy-b',
              'proxy_ip': 'null', 'healthy': 'false'}, 1.0),
        ]


class TestCollect:
    """Ordering and failure propagation of a full scrape."""

    def test_collects_allocators_then_proxies(self, client):
        collector, sink = make_collector(client)
        collector.collect()

        assert client.calls == ['allocators', 'proxies']
        assert sink.samples('ece_proxy_info')
        assert sink.samples('ece_allocator_info')

    def test_allocator_failure_skips_proxies(self, proxies_payload):
        client = FakeClient(proxies=ProxiesRoot.from_dict(proxies_payload), allocators_error=NotFound())
        collector, sink = make_collector(client)

        with pytest.raises(NotFound):
            collector.collect()

        assert client.calls == ['allocators']
        assert sink.names() == []

    def test_proxy_failure_keeps_allocator_gauges(self, allocators_payload):
        client = FakeClient(allocators=AllocatorsRoot.from_dict(allocators_payload),
                            proxies_error=Forbidden())
        collector, sink = make_collector(client)

        with pytest.raises(Forbidden):
            collector.collect()

        assert len(sink.samples('ece_allocator_info')) == 2
        assert sink.samples('ece_proxy_info') == []

    def test_reprojection_is_deterministic(self, allocators_payload, proxies_payload):
        allocators = AllocatorsRoot.from_dict(allocators_payload)
        proxies = ProxiesRoot.from_dict(proxies_payload)
        first_client = FakeClient(allocators=allocators, proxies=proxies)
        second_client = FakeClient(allocators=AllocatorsRoot.from_dict(allocators.to_dict()),
                                   proxies=ProxiesRoot.from_dict(proxies.to_dict()))

        first, first_sink = make_collector(first_client)
        second, second_sink = make_collector(second_client)
        first.collect()
        second.collect()

        assert first_sink.render() == second_sink.render()
