"""Metric registry.

Name-keyed registry of gauges and cumulatives, exposed to exporters through
a MetricProducer.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, TypeVar

from statscore.core.clock import Clock
from statscore.core.errors import DuplicateMetricError
from statscore.core.export.producer import MetricProducer
from statscore.core.export.types import Metric, MetricDescriptorType
from statscore.core.metrics.cumulative import Cumulative
from statscore.core.metrics.derived_cumulative import DerivedCumulative
from statscore.core.metrics.derived_gauge import DerivedGauge
from statscore.core.metrics.gauge import Gauge
from statscore.core.metrics.types import LabeledMeter, Meter, MetricOptions
from statscore.core.validation import validate_array_elements_not_null, validate_not_null

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=LabeledMeter)


class MetricRegistry:
    """Registry for gauges and cumulatives."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._metrics: Dict[str, Meter] = {}
        self._lock = threading.Lock()
        self._metric_producer = RegistryMetricProducer(self)

    def add_int64_gauge(self, name: str, options: Optional[MetricOptions] = None) -> Gauge:
        """Create and register a Gauge with integer values."""
        return self._add(name, options, Gauge, MetricDescriptorType.GAUGE_INT64)

    def add_double_gauge(self, name: str, options: Optional[MetricOptions] = None) -> Gauge:
        """Create and register a Gauge with float values."""
        return self._add(name, options, Gauge, MetricDescriptorType.GAUGE_DOUBLE)

    def add_derived_int64_gauge(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> DerivedGauge:
        return self._add(name, options, DerivedGauge, MetricDescriptorType.GAUGE_INT64)

    def add_derived_double_gauge(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> DerivedGauge:
        return self._add(name, options, DerivedGauge, MetricDescriptorType.GAUGE_DOUBLE)

    def add_int64_cumulative(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> Cumulative:
        return self._add(name, options, Cumulative, MetricDescriptorType.CUMULATIVE_INT64)

    def add_double_cumulative(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> Cumulative:
        return self._add(name, options, Cumulative, MetricDescriptorType.CUMULATIVE_DOUBLE)

    def add_derived_int64_cumulative(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> DerivedCumulative:
        return self._add(
            name, options, DerivedCumulative, MetricDescriptorType.CUMULATIVE_INT64
        )

    def add_derived_double_cumulative(
        self, name: str, options: Optional[MetricOptions] = None
    ) -> DerivedCumulative:
        return self._add(
            name, options, DerivedCumulative, MetricDescriptorType.CUMULATIVE_DOUBLE
        )

    def _add(
        self,
        name: str,
        options: Optional[MetricOptions],
        factory: Callable[..., M],
        type: MetricDescriptorType,
    ) -> M:
        validate_not_null(name, "name")
        options = options or MetricOptions()
        label_keys = options.label_keys if options.label_keys is not None else []
        validate_array_elements_not_null(label_keys, "labelKey")

        meter = factory(
            name,
            options.description if options.description is not None else "",
            options.unit,
            type,
            list(label_keys),
            dict(options.constant_labels or {}),
            clock=self._clock,
        )
        self.register_metric(name, meter)
        return meter

    def register_metric(self, name: str, meter: Meter) -> None:
        """Register ``meter`` under ``name``; existing names are never replaced."""
        with self._lock:
            if name in self._metrics:
                raise DuplicateMetricError(
                    f"A metric with the name {name} has already been registered."
                )
            self._metrics[name] = meter
        logger.info("Metric registered", extra={"metric": name})

    def remove_metric(self, name: str) -> None:
        with self._lock:
            self._metrics.pop(name, None)

    def get_metric(self, name: str) -> Optional[Meter]:
        """Get meter by name."""
        with self._lock:
            return self._metrics.get(name)

    def list_metrics(self) -> List[str]:
        """List all metric names."""
        with self._lock:
            return list(self._metrics.keys())

    def get_meters(self) -> List[Meter]:
        with self._lock:
            return list(self._metrics.values())

    def get_metric_producer(self) -> MetricProducer:
        return self._metric_producer


class RegistryMetricProducer(MetricProducer):
    """Collects every registered meter, skipping those without series."""

    def __init__(self, registry: MetricRegistry):
        self._registry = registry

    def get_metrics(self) -> List[Metric]:
        metrics = []
        for meter in self._registry.get_meters():
            metric = meter.get_metric()
            if metric is not None:
                metrics.append(metric)
        return metrics
