"""DerivedCumulative: cumulative series read from caller objects at export.

The exported value never decreases: a snapshot reports the larger of the
freshly extracted value and the last value reported for the series.
"""

from __future__ import annotations

import logging
import math
import numbers
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

from statscore.core.clock import Clock, Timestamp
from statscore.core.errors import DuplicateTimeSeriesError
from statscore.core.export.types import Metric, MetricDescriptorType, Point, TimeSeries
from statscore.core.hashing import hash_label_values
from statscore.core.metrics.derived_gauge import ERROR_MESSAGE_DUPLICATE_TIME_SERIES, DerivedEntry
from statscore.core.metrics.sources import resolve_source
from statscore.core.metrics.types import LabeledMeter, LabelKeyArg, LabelValueArg
from statscore.core.validation import validate_not_null

logger = logging.getLogger(__name__)


@dataclass
class CumulativeEntry(DerivedEntry):
    prev_value: Union[int, float] = 0


class DerivedCumulative(LabeledMeter):
    def __init__(
        self,
        name: str,
        description: str,
        unit: str,
        type: MetricDescriptorType,
        label_keys: Sequence[LabelKeyArg],
        constant_labels: Optional[Dict[LabelKeyArg, LabelValueArg]] = None,
        start_time: Optional[Timestamp] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(name, description, unit, type, label_keys, constant_labels, clock)
        self.start_time = start_time or self._now()
        self._registered_points: Dict[str, CumulativeEntry] = {}
        self._export_lock = threading.RLock()

    def create_time_series(self, label_values: Sequence[LabelValueArg], obj: Any) -> None:
        """Create a series observed from ``obj`` (function, get_value, length or size)."""
        values = self._normalize_label_values(label_values)
        validate_not_null(obj, "obj")
        key = hash_label_values(values)

        with self._lock:
            if key in self._registered_points:
                raise DuplicateTimeSeriesError(ERROR_MESSAGE_DUPLICATE_TIME_SERIES)
            self._check_size(values)
            source = resolve_source(obj)
            self._registered_points[key] = CumulativeEntry(
                self._series_label_values(values), source
            )

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
        # Sources run outside self._lock; the reentrant export lock keeps prev_value monotonic
        with self._export_lock:
            timeseries = []
            for entry in entries:
                value = self._clamped_value(entry, is_int64)
                timeseries.append(
                    TimeSeries(
                        label_values=entry.label_values,
                        points=(Point(value=value, timestamp=timestamp),),
                        start_timestamp=self.start_time,
                    )
                )
        return Metric(descriptor=self.metric_descriptor, timeseries=tuple(timeseries))

    def _clamped_value(self, entry: CumulativeEntry, is_int64: bool) -> Union[int, float]:
        raw = entry.source.extractor()
        if isinstance(raw, bool) or not isinstance(raw, numbers.Real) or not math.isfinite(raw):
            logger.debug(
                "Discarding derived cumulative value",
                extra={"metric": self.name, "value": raw, "reason": "not a finite number"},
            )
            return entry.prev_value
        value = int(raw) if is_int64 else raw
        entry.prev_value = max(value, entry.prev_value)
        return entry.prev_value
