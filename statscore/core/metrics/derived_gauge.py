"""DerivedGauge: gauge series whose values are read from caller objects at export."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from statscore.core.clock import Clock
from statscore.core.errors import DuplicateTimeSeriesError
from statscore.core.export.types import (
    LabelValue,
    Metric,
    MetricDescriptorType,
    Point,
    TimeSeries,
)
from statscore.core.hashing import hash_label_values
from statscore.core.metrics.sources import DerivedSource, resolve_source
from statscore.core.metrics.types import LabeledMeter, LabelKeyArg, LabelValueArg
from statscore.core.validation import validate_not_null

ERROR_MESSAGE_DUPLICATE_TIME_SERIES = "A different time series with the same labels already exists."


@dataclass
class DerivedEntry:
    label_values: Tuple[LabelValue, ...]
    source: DerivedSource

    def read(self, is_int64: bool):
        value = self.source.extractor()
        return int(value) if is_int64 else value


class DerivedGauge(LabeledMeter):
    """Gauge whose values are observed from an object every time metrics are collected."""

    def __init__(
        self,
        name: str,
        description: str,
        unit: str,
        type: MetricDescriptorType,
        label_keys: Sequence[LabelKeyArg],
        constant_labels: Optional[Dict[LabelKeyArg, LabelValueArg]] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(name, description, unit, type, label_keys, constant_labels, clock)
        self._registered_points: Dict[str, DerivedEntry] = {}

    def create_time_series(self, label_values: Sequence[LabelValueArg], obj: Any) -> None:
        """Create a series observed from ``obj``.

        Args:
            label_values: Values for the meter's label keys.
            obj: A zero-argument function, or an object exposing
                ``get_value()``, ``length`` or ``size`` (in that order of
                precedence).

        Raises:
            DuplicateTimeSeriesError: A series already exists for the values.
            LabelSizeMismatchError: Wrong number of label values.
            UnknownSourceTypeError: No value can be extracted from ``obj``.
        """
        values = self._normalize_label_values(label_values)
        validate_not_null(obj, "obj")
        key = hash_label_values(values)

        with self._lock:
            if key in self._registered_points:
                raise DuplicateTimeSeriesError(ERROR_MESSAGE_DUPLICATE_TIME_SERIES)
            self._check_size(values)
            source = resolve_source(obj)
            self._registered_points[key] = DerivedEntry(self._series_label_values(values), source)

    def remove_time_series(self, label_values: Sequence[LabelValueArg]) -> None:
        validate_not_null(label_values, "labelValues")
        with self._lock:
            self._registered_points.pop(hash_label_values(label_values), None)

    def clear(self) -> None:
        with self._lock:
            self._registered_points.clear()

    def get_metric(self) -> Optional[Metric]:
        with self._lock:
            entries = list(self._registered_points.values())
        if not entries:
            return None
        timestamp = self._now()
        is_int64 = self.metric_descriptor.type.is_int64
        return Metric(
            descriptor=self.metric_descriptor,
            timeseries=tuple(
                TimeSeries(
                    label_values=entry.label_values,
                    points=(Point(value=entry.read(is_int64), timestamp=timestamp),),
                )
                for entry in entries
            ),
        )
