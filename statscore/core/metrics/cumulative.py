"""Cumulative: explicitly addressed values that only increase.

The value of a series can only grow, or be reset to zero which also restarts
its accumulation window.
"""

from __future__ import annotations

import math
import threading
from typing import Dict, Optional, Sequence, Tuple, Union

from statscore.core.clock import Clock, Timestamp, get_clock
from statscore.core.errors import InvalidValueError
from statscore.core.export.types import (
    LabelValue,
    Metric,
    MetricDescriptorType,
    Point,
    TimeSeries,
)
from statscore.core.hashing import hash_label_values
from statscore.core.metrics.types import LabeledMeter, LabelKeyArg, LabelValueArg
from statscore.core.validation import validate_not_null


class CumulativePoint:
    """The value of a single Cumulative time series."""

    def __init__(
        self,
        label_values: Tuple[LabelValue, ...],
        start_timestamp: Timestamp,
        clock: Clock,
        is_int64: bool = False,
    ):
        self.label_values = label_values
        self._clock = clock
        self._is_int64 = is_int64
        self._start_timestamp = start_timestamp
        self._value: Union[int, float] = 0
        self._lock = threading.Lock()

    def inc(self, amount: Optional[Union[int, float]] = None) -> None:
        """Increment by ``amount`` (default 1).

        Raises:
            InvalidValueError: ``amount`` is NaN, infinite, not a number or negative.
        """
        if amount is None:
            amount = 1
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
            raise InvalidValueError(f"Value is not a valid number: {amount}")
        if amount < 0:
            raise InvalidValueError("It is not possible to decrease a cumulative metric")
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        """Zero the value and restart the series' start timestamp."""
        with self._lock:
            self._value = 0
            self._start_timestamp = self._clock.now()

    @property
    def value(self) -> Union[int, float]:
        with self._lock:
            value = self._value
        return int(value) if self._is_int64 else value

    def get_time_series(self, now: Timestamp) -> TimeSeries:
        with self._lock:
            value, start = self._value, self._start_timestamp
        return TimeSeries(
            label_values=self.label_values,
            points=(Point(value=int(value) if self._is_int64 else value, timestamp=now),),
            start_timestamp=start,
        )


class Cumulative(LabeledMeter):
    """Cumulative metric whose series are created on demand from label values."""

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
        self._registered_points: Dict[str, CumulativePoint] = {}

    def get_or_create_time_series(self, label_values: Sequence[LabelValueArg]) -> CumulativePoint:
        return self._register_time_series(self._normalize_label_values(label_values))

    def get_default_time_series(self) -> CumulativePoint:
        return self._register_time_series(self._default_label_values())

    def remove_time_series(self, label_values: Sequence[LabelValueArg]) -> None:
        validate_not_null(label_values, "labelValues")
        with self._lock:
            self._registered_points.pop(hash_label_values(label_values), None)

    def clear(self) -> None:
        with self._lock:
            self._registered_points.clear()

    def _register_time_series(self, label_values: Sequence[LabelValue]) -> CumulativePoint:
        key = hash_label_values(label_values)
        with self._lock:
            point = self._registered_points.get(key)
            if point is not None:
                return point
            self._check_size(label_values)
            clock = self._clock or get_clock()
            point = CumulativePoint(
                self._series_label_values(label_values),
                clock.now(),
                clock,
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
