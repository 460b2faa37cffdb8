"""Aggregation data kinds and their update rules.

Each View row owns one of these accumulators. ``add_measurement`` mutates the
accumulator in place; callers serialize updates (the View holds a lock) and
take ``snapshot()`` copies for export so readers never see a torn update.
"""

from __future__ import annotations

import copy
import math
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from statscore.core.clock import Timestamp
from statscore.core.export.types import Exemplar
from statscore.core.stats.types import AggregationType, MeasureType
from statscore.core.tags import TagValue

TagValues = List[Optional[TagValue]]


@dataclass
class AggregationData:
    """Fields shared by every aggregation kind."""

    tag_values: TagValues
    timestamp: Timestamp

    @property
    def type(self) -> AggregationType:
        raise NotImplementedError

    def snapshot(self) -> "AggregationData":
        return copy.deepcopy(self)


@dataclass
class SumData(AggregationData):
    value: Union[int, float] = 0

    @property
    def type(self) -> AggregationType:
        return AggregationType.SUM


@dataclass
class CountData(AggregationData):
    value: int = 0

    @property
    def type(self) -> AggregationType:
        return AggregationType.COUNT


@dataclass
class LastValueData(AggregationData):
    value: Optional[Union[int, float]] = None

    @property
    def type(self) -> AggregationType:
        return AggregationType.LAST_VALUE


@dataclass
class DistributionData(AggregationData):
    """Online distribution statistics.

    ``mean`` and ``sum_of_squared_deviation`` are maintained with Welford's
    method, so the standard deviation is available without replaying values.
    ``exemplars[i]`` is the last sample that fell in bucket ``i``; it is
    overwritten, not sampled from a reservoir.
    """

    start_time: Optional[Timestamp] = None
    count: int = 0
    sum: float = 0
    min: float = math.inf
    max: float = -math.inf
    mean: float = 0.0
    sum_of_squared_deviation: float = 0.0
    bucket_boundaries: List[float] = field(default_factory=list)
    bucket_counts: List[int] = field(default_factory=list)
    exemplars: List[Optional[Exemplar]] = field(default_factory=list)

    @property
    def type(self) -> AggregationType:
        return AggregationType.DISTRIBUTION

    @property
    def std_deviation(self) -> float:
        if self.count == 0:
            return 0.0
        return math.sqrt(self.sum_of_squared_deviation / self.count)


def create_aggregation_data(
    aggregation: AggregationType,
    tag_values: TagValues,
    timestamp: Timestamp,
    bucket_boundaries: Sequence[float] = (),
    start_time: Optional[Timestamp] = None,
) -> AggregationData:
    """Seed an empty accumulator for a new row."""
    if aggregation == AggregationType.DISTRIBUTION:
        return DistributionData(
            tag_values=list(tag_values),
            timestamp=timestamp,
            start_time=start_time,
            bucket_boundaries=list(bucket_boundaries),
            bucket_counts=[0] * (len(bucket_boundaries) + 1),
            exemplars=[None] * (len(bucket_boundaries) + 1),
        )
    if aggregation == AggregationType.SUM:
        return SumData(tag_values=list(tag_values), timestamp=timestamp)
    if aggregation == AggregationType.COUNT:
        return CountData(tag_values=list(tag_values), timestamp=timestamp)
    return LastValueData(tag_values=list(tag_values), timestamp=timestamp)


def add_measurement(
    data: AggregationData,
    value: Union[int, float],
    measure_type: MeasureType,
    timestamp: Timestamp,
    attachments: Optional[Dict[str, str]] = None,
) -> AggregationData:
    """Fold one value into ``data``. INT64 values are truncated toward zero."""
    data.timestamp = timestamp
    if measure_type == MeasureType.INT64:
        value = math.trunc(value)

    if isinstance(data, DistributionData):
        _add_to_distribution(data, value, attachments)
    elif isinstance(data, SumData):
        data.value += value
    elif isinstance(data, CountData):
        data.value += 1
    elif isinstance(data, LastValueData):
        data.value = value
    return data


def bucket_index(boundaries: Sequence[float], value: float) -> int:
    """Index of the first boundary strictly greater than ``value``.

    Values at or above the last boundary land in the overflow bucket
    (``len(boundaries)``).
    """
    return bisect_right(boundaries, value)


def _add_to_distribution(
    data: DistributionData,
    value: Union[int, float],
    attachments: Optional[Dict[str, str]],
) -> None:
    data.count += 1
    data.sum += value
    data.min = min(data.min, value)
    data.max = max(data.max, value)

    delta = value - data.mean
    data.mean += delta / data.count
    data.sum_of_squared_deviation += delta * (value - data.mean)

    index = bucket_index(data.bucket_boundaries, value)
    if index < len(data.bucket_counts):
        data.bucket_counts[index] += 1

    # Exemplars are only kept when the caller supplies context
    if attachments and index < len(data.exemplars):
        data.exemplars[index] = Exemplar(
            value=value,
            timestamp=data.timestamp,
            attachments=dict(attachments),
        )
