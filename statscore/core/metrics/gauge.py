"""Gauge: explicitly addressed values that can go up and down."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Sequence, Tuple, Union

from statscore.core.clock import Clock, Timestamp
from statscore.core.export.types import (
    LabelValue,
    Metric,
    MetricDescriptorType,
    Point,
    TimeSeries,
)
from statscore.core.hashing import hash_label_values
from statscore.core.metrics.types import (
    LabeledMeter,
    LabelKeyArg,
    LabelValueArg,
)
from statscore.core.validation import validate_not_null


class GaugePoint:
    """The value of a single Gauge time series."""

    def __init__(self, label_values: Tuple[LabelValue, ...], is_int64: bool = False):
        self.label_values = label_values
        self._is_int64 = is_int64
        self._value: Union[int, float] = 0
        self._lock = threading.Lock()

    def add(self, amount: Union[int, float]) -> None:
        """Add ``amount`` to the current value. The amount can be negative."""
        with self._lock:
            self._value = self._value + amount

    def set(self, value: Union[int, float]) -> None:
        with self._lock:
            self._value = value

    @property
    def value(self) -> Union[int, float]:
        with self._lock:
            value = self._value
        return int(value) if self._is_int64 else value

    def get_time_series(self, timestamp: Timestamp) -> TimeSeries:
        return TimeSeries(
            label_values=self.label_values,
            points=(Point(value=self.value, timestamp=timestamp),),
        )


class Gauge(LabeledMeter):
    """Gauge metric whose series are created on demand from label values.

    Keep a reference to the returned GaugePoint instead of looking it up on
    every update.
    """

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
        self._registered_points: Dict[str, GaugePoint] = {}

    def get_or_create_time_series(self, label_values: Sequence[LabelValueArg]) -> GaugePoint:
        """Return the point for ``label_values``, creating its series if needed."""
        return self._register_time_series(self._normalize_label_values(label_values))

    def get_default_time_series(self) -> GaugePoint:
        """Point for the series with every label unset."""
        return self._register_time_series(self._default_label_values())

    def remove_time_series(self, label_values: Sequence[LabelValueArg]) -> None:
        """Remove a series; points handed out for it no longer export."""
        validate_not_null(label_values, "labelValues")
        with self._lock:
            self._registered_points.pop(hash_label_values(label_values), None)

    def clear(self) -> None:
        with self._lock:
            self._registered_points.clear()

    def _register_time_series(self, label_values: Sequence[LabelValue]) -> GaugePoint:
        key = hash_label_values(label_values)
        with self._lock:
            point = self._registered_points.get(key)
            if point is not None:
                return point
            self._check_size(label_values)
            point = GaugePoint(
                self._series_label_values(label_values),
                is_int64=self.metric_descriptor.type.is_int64,
            )
            self._registered_points[key] = point
            return point

    def get_metric(self) -> Optional[Metric]:
        with self._lock:
            points = list(self._registered_points.values())
        if not points:
            return None
        now = self._now()
        return Metric(
            descriptor=self.metric_descriptor,
            timeseries=tuple(point.get_time_series(now) for point in points),
        )
