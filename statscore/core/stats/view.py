"""Views: tag-keyed aggregations of a single measure."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Mapping, Optional, Sequence, Union

from statscore.core.clock import Clock, Timestamp, get_clock
from statscore.core.errors import LabelSizeMismatchError, ValidationError
from statscore.core.export.types import Metric, MetricDescriptor, TimeSeries
from statscore.core.hashing import hash_label_values
from statscore.core.stats import metric_utils
from statscore.core.stats.aggregation import (
    AggregationData,
    add_measurement,
    create_aggregation_data,
)
from statscore.core.stats.bucket_boundaries import BucketBoundaries
from statscore.core.stats.types import AggregationType, Measure, Measurement
from statscore.core.tags import TagKey, TagMap, TagValue
from statscore.core.validation import (
    validate_array_elements_not_null,
    validate_not_null,
    validate_unique,
)

logger = logging.getLogger(__name__)

TagsArg = Union[TagMap, Mapping, Sequence[Optional[TagValue]], None]


class View:
    """A registered aggregation of one Measure's measurements.

    Rows are keyed by the hash of the tag values projected onto ``columns``;
    each row owns one AggregationData. Prefer ``Stats.create_view`` over
    constructing a View directly.

    Args:
        name: Unique view name, e.g. ``rpc_latency``.
        measure: The measure whose measurements this view aggregates.
        aggregation: How values are accumulated.
        tag_keys: Ordered tag keys (columns) to group by.
        description: Human readable description.
        bucket_boundaries: Required for DISTRIBUTION aggregations.
        clock: Time source, defaults to the process clock.
    """

    def __init__(
        self,
        name: str,
        measure: Measure,
        aggregation: AggregationType,
        tag_keys: Sequence[Union[TagKey, str]],
        description: str = "",
        bucket_boundaries: Optional[Sequence[float]] = None,
        clock: Optional[Clock] = None,
    ):
        validate_not_null(name, "name")
        validate_not_null(measure, "measure")
        validate_not_null(aggregation, "aggregation")
        validate_not_null(tag_keys, "tagKeys")
        validate_array_elements_not_null(tag_keys, "tagKey")
        if aggregation == AggregationType.DISTRIBUTION and bucket_boundaries is None:
            raise ValidationError("No bucketBoundaries specified")

        columns = [TagKey(k) if isinstance(k, str) else k for k in tag_keys]
        validate_unique(columns, "tagKey")

        self.name = name
        self.description = description or ""
        self.measure = measure
        self.aggregation = aggregation
        self._columns: List[TagKey] = columns
        self._clock = clock
        self.start_time: Timestamp = self._now()
        self.end_time: Optional[Timestamp] = None
        self.registered = False
        self._bucket_boundaries = BucketBoundaries(bucket_boundaries)
        self._rows: Dict[str, AggregationData] = {}
        self._lock = threading.Lock()
        self._metric_descriptor = metric_utils.view_to_metric_descriptor(self)

    def _now(self) -> Timestamp:
        return (self._clock or get_clock()).now()

    @property
    def columns(self) -> List[TagKey]:
        return list(self._columns)

    def get_columns(self) -> List[TagKey]:
        return self.columns

    @property
    def bucket_boundaries(self) -> List[float]:
        return self._bucket_boundaries.boundaries

    @property
    def metric_descriptor(self) -> MetricDescriptor:
        return self._metric_descriptor

    def get_tag_values(self, tags: TagsArg) -> List[Optional[TagValue]]:
        """Project tags onto the view's columns. Missing keys become ``None``."""
        if tags is None:
            return [None] * len(self._columns)
        if isinstance(tags, (list, tuple)):
            if len(tags) != len(self._columns):
                raise LabelSizeMismatchError(
                    f"View {self.name} has {len(self._columns)} columns "
                    f"but {len(tags)} tag values were given"
                )
            return [TagValue(v) if isinstance(v, str) else v for v in tags]
        if not isinstance(tags, TagMap):
            tags = TagMap(tags)
        return [tags.get(column) for column in self._columns]

    def record_measurement(
        self,
        measurement: Measurement,
        tags: TagsArg = None,
        attachments: Optional[Dict[str, str]] = None,
    ) -> None:
        """Record a measurement in the row for its tag values.

        Use ``Stats.record`` instead, which also rejects negative values.
        INT64 measures have their values truncated.
        """
        if tags is None:
            tags = measurement.tags
        tag_values = self.get_tag_values(tags)
        key = hash_label_values(tag_values)
        now = self._now()

        with self._lock:
            data = self._rows.get(key)
            if data is None:
                data = create_aggregation_data(
                    self.aggregation,
                    tag_values,
                    now,
                    bucket_boundaries=self._bucket_boundaries.boundaries,
                    start_time=self.start_time,
                )
                self._rows[key] = data
            add_measurement(data, measurement.value, self.measure.type, now, attachments)
            self.end_time = now

    def get_snapshot(self, tag_values: Sequence[Optional[TagValue]]) -> Optional[AggregationData]:
        """Copy of the row for the given tag values, or ``None`` if nothing was recorded."""
        key = hash_label_values(self.get_tag_values(list(tag_values)))
        with self._lock:
            data = self._rows.get(key)
            return data.snapshot() if data is not None else None

    def get_snapshots(self) -> List[AggregationData]:
        with self._lock:
            return [data.snapshot() for data in self._rows.values()]

    def get_metric(self, start_time: Optional[Timestamp] = None) -> Optional[Metric]:
        """Snapshot every row into a Metric, or ``None`` if nothing was recorded.

        Cumulative aggregations carry ``start_time`` (default: the view's
        creation time) as the series start; LAST_VALUE series carry none.
        """
        rows = self.get_snapshots()
        if not rows:
            return None

        descriptor = self._metric_descriptor
        if descriptor.type.is_gauge:
            start_timestamp = None
        else:
            start_timestamp = start_time or self.start_time
        now = self._now()

        timeseries = tuple(
            TimeSeries(
                label_values=metric_utils.tag_values_to_label_values(data.tag_values),
                points=(metric_utils.aggregation_to_point(data, now),),
                start_timestamp=start_timestamp,
            )
            for data in rows
        )
        return Metric(descriptor=descriptor, timeseries=timeseries)

    def clear(self) -> None:
        """Drop all accumulated rows."""
        with self._lock:
            self._rows.clear()

    def __repr__(self) -> str:
        return (
            f"View(name={self.name!r}, measure={self.measure.name!r}, "
            f"aggregation={self.aggregation.name})"
        )
