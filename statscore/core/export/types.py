"""Export data model.

A ``Metric`` is the snapshot exporters consume: a descriptor plus one
``TimeSeries`` per label-value combination, each holding ``Point``s. All of
these are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from statscore.core.clock import Timestamp


class MetricDescriptorType(Enum):
    """Wire type of a metric."""
    UNSPECIFIED = 0
    GAUGE_INT64 = 1
    GAUGE_DOUBLE = 2
    GAUGE_DISTRIBUTION = 3
    CUMULATIVE_INT64 = 4
    CUMULATIVE_DOUBLE = 5
    CUMULATIVE_DISTRIBUTION = 6
    SUMMARY = 7

    @property
    def is_gauge(self) -> bool:
        return self.name.startswith("GAUGE")

    @property
    def is_int64(self) -> bool:
        return self.name.endswith("INT64")


@dataclass(frozen=True)
class LabelKey:
    key: str
    description: str = ""


@dataclass(frozen=True)
class LabelValue:
    """A label value. ``value=None`` marks an unset label."""
    value: Optional[str] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None


UNSET_LABEL_VALUE = LabelValue(None)


@dataclass(frozen=True)
class MetricDescriptor:
    name: str
    description: str
    unit: str
    type: MetricDescriptorType
    label_keys: Tuple[LabelKey, ...] = ()


@dataclass(frozen=True)
class Exemplar:
    """The most recent raw sample that landed in a bucket."""
    value: float
    timestamp: Timestamp
    attachments: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Bucket:
    count: int
    exemplar: Optional[Exemplar] = None


@dataclass(frozen=True)
class BucketOptions:
    """Explicit bucket bounds."""
    bounds: Tuple[float, ...] = ()


@dataclass(frozen=True)
class DistributionValue:
    count: int
    sum: float
    sum_of_squared_deviation: float
    bucket_options: BucketOptions
    buckets: Tuple[Bucket, ...]


PointValue = Union[int, float, DistributionValue]


@dataclass(frozen=True)
class Point:
    value: PointValue
    timestamp: Timestamp


@dataclass(frozen=True)
class TimeSeries:
    label_values: Tuple[LabelValue, ...]
    points: Tuple[Point, ...]
    start_timestamp: Optional[Timestamp] = None


@dataclass(frozen=True)
class Metric:
    descriptor: MetricDescriptor
    timeseries: Tuple[TimeSeries, ...]
