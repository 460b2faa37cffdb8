"""Tests for MetricProducerManager."""

import logging

import pytest

from statscore.core.errors import ValidationError
from statscore.core.export.producer import MetricProducer, MetricProducerManager
from statscore.core.export.types import Metric, MetricDescriptor, MetricDescriptorType


class _StaticProducer(MetricProducer):
    def __init__(self, *names):
        self._metrics = [
            Metric(
                descriptor=MetricDescriptor(
                    name=name, description="", unit="1", type=MetricDescriptorType.GAUGE_INT64
                ),
                timeseries=(),
            )
            for name in names
        ]

    def get_metrics(self):
        return list(self._metrics)


class _BrokenProducer(MetricProducer):
    def get_metrics(self):
        raise RuntimeError("boom")


class TestMetricProducerManager:
    """Tests for producer membership and collection."""

    def test_add_is_idempotent(self):
        manager = MetricProducerManager()
        producer = _StaticProducer("a")
        manager.add(producer)
        manager.add(producer)
        assert manager.get_all_metric_producer() == {producer}

    def test_membership_by_identity(self):
        manager = MetricProducerManager()
        manager.add(_StaticProducer("a"))
        manager.add(_StaticProducer("a"))
        assert len(manager.get_all_metric_producer()) == 2

    def test_add_none(self):
        with pytest.raises(ValidationError, match="Missing mandatory metricProducer parameter"):
            MetricProducerManager().add(None)

    def test_remove(self):
        manager = MetricProducerManager()
        producer = _StaticProducer("a")
        manager.add(producer)
        manager.remove(producer)
        manager.remove(producer)
        assert manager.get_all_metric_producer() == set()

    def test_remove_none(self):
        with pytest.raises(ValidationError):
            MetricProducerManager().remove(None)

    def test_remove_all(self):
        manager = MetricProducerManager()
        manager.add(_StaticProducer("a"))
        manager.add(_StaticProducer("b"))
        manager.remove_all()
        assert len(manager.get_all_metric_producer()) == 0

    def test_collect_all(self):
        manager = MetricProducerManager()
        manager.add(_StaticProducer("a", "b"))
        manager.add(_StaticProducer("c"))
        names = sorted(m.descriptor.name for m in manager.collect_all())
        assert names == ["a", "b", "c"]

    def test_failing_producer_skipped(self, caplog):
        manager = MetricProducerManager()
        manager.add(_BrokenProducer())
        manager.add(_StaticProducer("ok"))
        with caplog.at_level(logging.ERROR, logger="statscore.core.export.producer"):
            metrics = manager.collect_all()
        assert [m.descriptor.name for m in metrics] == ["ok"]
        assert "boom" in caplog.text
