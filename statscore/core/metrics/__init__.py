"""Metrics Module.

Provides directly managed meters:
- Gauge and DerivedGauge
- Cumulative and DerivedCumulative
- MetricRegistry
"""

from statscore.core.metrics.cumulative import Cumulative, CumulativePoint
from statscore.core.metrics.derived_cumulative import DerivedCumulative
from statscore.core.metrics.derived_gauge import DerivedGauge
from statscore.core.metrics.gauge import Gauge, GaugePoint
from statscore.core.metrics.registry import MetricRegistry, RegistryMetricProducer
from statscore.core.metrics.sources import (
    FunctionSource,
    LengthSource,
    SizeSource,
    ValueSource,
    resolve_source,
)
from statscore.core.metrics.types import Meter, MetricOptions

__all__ = [
    "Cumulative",
    "CumulativePoint",
    "DerivedCumulative",
    "DerivedGauge",
    "Gauge",
    "GaugePoint",
    "MetricRegistry",
    "RegistryMetricProducer",
    "FunctionSource",
    "LengthSource",
    "SizeSource",
    "ValueSource",
    "resolve_source",
    "Meter",
    "MetricOptions",
]
