"""Stats Module.

Provides measurement recording and aggregation:
- Measures and measurements
- Views with sum, count, last value and distribution aggregations
- Conversion of views to exportable Metrics
"""

from statscore.core.stats.aggregation import (
    AggregationData,
    CountData,
    DistributionData,
    LastValueData,
    SumData,
)
from statscore.core.stats.bucket_boundaries import BucketBoundaries
from statscore.core.stats.stats import Stats, StatsMetricProducer
from statscore.core.stats.types import (
    AggregationType,
    Measure,
    Measurement,
    MeasureType,
    MeasureUnit,
    StatsEventListener,
)
from statscore.core.stats.view import View

__all__ = [
    "AggregationData",
    "CountData",
    "DistributionData",
    "LastValueData",
    "SumData",
    "BucketBoundaries",
    "Stats",
    "StatsMetricProducer",
    "AggregationType",
    "Measure",
    "Measurement",
    "MeasureType",
    "MeasureUnit",
    "StatsEventListener",
    "View",
]
