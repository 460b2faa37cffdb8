"""Tests for MetricRegistry."""

import logging

import pytest

from statscore.core.errors import DuplicateMetricError, ErrorCode, ValidationError
from statscore.core.export.types import LabelKey, LabelValue, MetricDescriptorType
from statscore.core.metrics.cumulative import Cumulative
from statscore.core.metrics.derived_cumulative import DerivedCumulative
from statscore.core.metrics.derived_gauge import DerivedGauge
from statscore.core.metrics.gauge import Gauge
from statscore.core.metrics.registry import MetricRegistry
from statscore.core.metrics.types import MetricOptions


@pytest.fixture
def registry():
    return MetricRegistry()


class TestFactories:
    """Tests for the typed factory methods."""

    @pytest.mark.parametrize(
        "factory,cls,type",
        [
            ("add_int64_gauge", Gauge, MetricDescriptorType.GAUGE_INT64),
            ("add_double_gauge", Gauge, MetricDescriptorType.GAUGE_DOUBLE),
            ("add_derived_int64_gauge", DerivedGauge, MetricDescriptorType.GAUGE_INT64),
            ("add_derived_double_gauge", DerivedGauge, MetricDescriptorType.GAUGE_DOUBLE),
            ("add_int64_cumulative", Cumulative, MetricDescriptorType.CUMULATIVE_INT64),
            ("add_double_cumulative", Cumulative, MetricDescriptorType.CUMULATIVE_DOUBLE),
            (
                "add_derived_int64_cumulative",
                DerivedCumulative,
                MetricDescriptorType.CUMULATIVE_INT64,
            ),
            (
                "add_derived_double_cumulative",
                DerivedCumulative,
                MetricDescriptorType.CUMULATIVE_DOUBLE,
            ),
        ],
    )
    def test_factory(self, registry, factory, cls, type):
        meter = getattr(registry, factory)("m")
        assert isinstance(meter, cls)
        assert meter.metric_descriptor.type == type
        assert registry.get_metric("m") is meter

    def test_options(self, registry):
        options = MetricOptions(
            description="Open connections",
            unit="1",
            label_keys=["pool"],
            constant_labels={"service": "api"},
        )
        gauge = registry.add_int64_gauge("connections", options)
        descriptor = gauge.metric_descriptor
        assert descriptor.description == "Open connections"
        assert descriptor.label_keys == (LabelKey("pool"), LabelKey("service"))

        gauge.get_or_create_time_series(["main"]).set(3)
        ts = gauge.get_metric().timeseries[0]
        assert ts.label_values == (LabelValue("main"), LabelValue("api"))

    def test_default_options(self, registry):
        gauge = registry.add_double_gauge("g")
        assert gauge.metric_descriptor.description == ""
        assert gauge.metric_descriptor.unit == "1"
        assert gauge.metric_descriptor.label_keys == ()

    def test_missing_name(self, registry):
        with pytest.raises(ValidationError, match="Missing mandatory name parameter"):
            registry.add_int64_gauge(None)

    def test_null_label_key(self, registry):
        with pytest.raises(ValidationError, match="labelKey elements should not be a NULL"):
            registry.add_int64_gauge("g", MetricOptions(label_keys=["a", None]))

    def test_constant_label_collision(self, registry):
        options = MetricOptions(label_keys=["a"], constant_labels={"a": "x"})
        with pytest.raises(ValidationError):
            registry.add_double_cumulative("c", options)
        assert registry.get_metric("c") is None


class TestRegistration:
    """Tests for name uniqueness and listing."""

    def test_duplicate_name(self, registry):
        registry.add_int64_gauge("requests")
        with pytest.raises(
            DuplicateMetricError,
            match="A metric with the name requests has already been registered.",
        ) as exc_info:
            registry.add_int64_gauge("requests")
        assert exc_info.value.code == ErrorCode.DUPLICATE_DATA

    def test_duplicate_across_kinds(self, registry):
        registry.add_int64_gauge("requests")
        with pytest.raises(DuplicateMetricError):
            registry.add_double_cumulative("requests")

    def test_first_meter_kept_on_duplicate(self, registry):
        first = registry.add_int64_gauge("requests")
        with pytest.raises(DuplicateMetricError):
            registry.add_double_gauge("requests")
        assert registry.get_metric("requests") is first

    def test_registration_logged(self, registry, caplog):
        with caplog.at_level(logging.INFO, logger="statscore.core.metrics.registry"):
            registry.add_int64_gauge("requests")
        assert any(getattr(r, "metric", None) == "requests" for r in caplog.records)

    def test_list_and_remove(self, registry):
        registry.add_int64_gauge("a")
        registry.add_int64_gauge("b")
        assert sorted(registry.list_metrics()) == ["a", "b"]
        registry.remove_metric("a")
        assert registry.list_metrics() == ["b"]
        registry.add_double_gauge("a")
        assert sorted(registry.list_metrics()) == ["a", "b"]


class TestRegistryProducer:
    """Tests for the registry MetricProducer."""

    def test_skips_meters_without_series(self, registry):
        registry.add_int64_gauge("empty")
        active = registry.add_int64_cumulative("active")
        active.get_or_create_time_series([]).inc()

        metrics = registry.get_metric_producer().get_metrics()
        assert [m.descriptor.name for m in metrics] == ["active"]

    def test_producer_identity(self, registry):
        assert registry.get_metric_producer() is registry.get_metric_producer()

    def test_derived_values_collected(self, registry):
        gauge = registry.add_derived_double_gauge("load")
        gauge.create_time_series([], lambda: 0.75)
        (metric,) = registry.get_metric_producer().get_metrics()
        assert metric.timeseries[0].points[0].value == 0.75
