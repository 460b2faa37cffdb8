"""Conversion from view state to the export data model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from statscore.core.clock import Timestamp
from statscore.core.export.types import (
    Bucket,
    BucketOptions,
    DistributionValue,
    LabelKey,
    LabelValue,
    MetricDescriptor,
    MetricDescriptorType,
    Point,
)
from statscore.core.stats.aggregation import AggregationData, DistributionData
from statscore.core.stats.types import AggregationType, Measure, MeasureType
from statscore.core.tags import TagValue

if TYPE_CHECKING:
    from statscore.core.stats.view import View


def get_metric_type(measure: Measure, aggregation: AggregationType) -> MetricDescriptorType:
    """Wire type for an (aggregation, measure type) pair."""
    if aggregation == AggregationType.SUM:
        if measure.type == MeasureType.INT64:
            return MetricDescriptorType.CUMULATIVE_INT64
        return MetricDescriptorType.CUMULATIVE_DOUBLE
    if aggregation == AggregationType.COUNT:
        return MetricDescriptorType.CUMULATIVE_INT64
    if aggregation == AggregationType.DISTRIBUTION:
        return MetricDescriptorType.CUMULATIVE_DISTRIBUTION
    if aggregation == AggregationType.LAST_VALUE:
        if measure.type == MeasureType.INT64:
            return MetricDescriptorType.GAUGE_INT64
        return MetricDescriptorType.GAUGE_DOUBLE
    raise ValueError(f"Unknown aggregation type {aggregation}")


def view_to_metric_descriptor(view: "View") -> MetricDescriptor:
    return MetricDescriptor(
        name=view.name,
        description=view.description,
        unit=view.measure.unit,
        type=get_metric_type(view.measure, view.aggregation),
        label_keys=tuple(LabelKey(key=column.name) for column in view.columns),
    )


def tag_values_to_label_values(
    tag_values: Sequence[Optional[TagValue]],
) -> Tuple[LabelValue, ...]:
    return tuple(
        LabelValue(tag_value.value if tag_value is not None else None)
        for tag_value in tag_values
    )


def aggregation_to_point(data: AggregationData, timestamp: Timestamp) -> Point:
    """Materialize one accumulator as an export point."""
    if isinstance(data, DistributionData):
        value = DistributionValue(
            count=data.count,
            sum=data.sum,
            sum_of_squared_deviation=data.sum_of_squared_deviation,
            bucket_options=BucketOptions(bounds=tuple(data.bucket_boundaries)),
            buckets=tuple(
                Bucket(count=count, exemplar=exemplar)
                for count, exemplar in zip(data.bucket_counts, data.exemplars)
            ),
        )
        return Point(value=value, timestamp=timestamp)
    return Point(value=data.value, timestamp=timestamp)
