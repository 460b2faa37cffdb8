"""Prometheus bridge.

``PrometheusCollector`` is a prometheus_client custom collector: register it
on a ``CollectorRegistry`` and every scrape polls the MetricProducerManager.
Serving the registry over HTTP is left to the host application.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, List, Optional, Sequence, Tuple

from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    HistogramMetricFamily,
)
from prometheus_client.registry import Collector

from statscore.core.config import get_settings
from statscore.core.export.producer import MetricProducerManager
from statscore.core.export.types import (
    DistributionValue,
    LabelValue,
    Metric,
    MetricDescriptorType,
    TimeSeries,
)

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_name(name: str) -> str:
    """Replace characters Prometheus rejects with underscores."""
    sanitized = _INVALID_CHARS.sub("_", name)
    if sanitized and sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def _label_values(values: Sequence[LabelValue]) -> List[str]:
    return [v.value if v.value is not None else "" for v in values]


def _histogram_buckets(value: DistributionValue) -> List[Tuple[str, float]]:
    buckets = []
    cumulative = 0
    for bound, bucket in zip(value.bucket_options.bounds, value.buckets):
        cumulative += bucket.count
        buckets.append((str(float(bound)), cumulative))
    buckets.append(("+Inf", value.count))
    return buckets


class PrometheusCollector(Collector):
    """Converts polled Metrics into Prometheus metric families."""

    def __init__(self, manager: MetricProducerManager, prefix: Optional[str] = None):
        self._manager = manager
        self._prefix = get_settings().PROMETHEUS_PREFIX if prefix is None else prefix

    def _family_name(self, name: str) -> str:
        if self._prefix:
            return sanitize_name(f"{self._prefix}_{name}")
        return sanitize_name(name)

    def collect(self) -> Iterator:
        for metric in self._manager.collect_all():
            family = self._to_family(metric)
            if family is not None:
                yield family

    def _to_family(self, metric: Metric):
        descriptor = metric.descriptor
        name = self._family_name(descriptor.name)
        labels = [sanitize_name(key.key) for key in descriptor.label_keys]
        documentation = descriptor.description or descriptor.name
        metric_type = descriptor.type

        if metric_type in (
            MetricDescriptorType.GAUGE_INT64,
            MetricDescriptorType.GAUGE_DOUBLE,
        ):
            family = GaugeMetricFamily(name, documentation, labels=labels)
            for ts in metric.timeseries:
                for point in ts.points:
                    if point.value is None:
                        continue
                    family.add_metric(_label_values(ts.label_values), point.value)
            return family

        if metric_type in (
            MetricDescriptorType.CUMULATIVE_INT64,
            MetricDescriptorType.CUMULATIVE_DOUBLE,
        ):
            family = CounterMetricFamily(name, documentation, labels=labels)
            for ts in metric.timeseries:
                for point in ts.points:
                    family.add_metric(
                        _label_values(ts.label_values),
                        point.value,
                        created=_created(ts),
                    )
            return family

        if metric_type in (
            MetricDescriptorType.CUMULATIVE_DISTRIBUTION,
            MetricDescriptorType.GAUGE_DISTRIBUTION,
        ):
            family = HistogramMetricFamily(name, documentation, labels=labels)
            for ts in metric.timeseries:
                for point in ts.points:
                    family.add_metric(
                        _label_values(ts.label_values),
                        _histogram_buckets(point.value),
                        point.value.sum,
                    )
            return family

        logger.warning(
            f"Skipping metric with unsupported type {metric_type.name}",
            extra={"metric": descriptor.name},
        )
        return None


def _created(ts: TimeSeries) -> Optional[float]:
    if ts.start_timestamp is None:
        return None
    return ts.start_timestamp.to_seconds()
