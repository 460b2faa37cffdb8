"""Stats registrar: measures, views, recording and listener fan-out."""

from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Generator, Iterable, List, Mapping, Optional, Sequence, Union

from statscore.core.clock import Clock
from statscore.core.errors import ValidationError
from statscore.core.export.producer import MetricProducer
from statscore.core.export.types import Metric
from statscore.core.stats.types import (
    AggregationType,
    Measure,
    Measurement,
    MeasureType,
    MeasureUnit,
    StatsEventListener,
)
from statscore.core.stats.view import View
from statscore.core.tags import TagKey, TagMap
from statscore.core.validation import validate_not_null

logger = logging.getLogger(__name__)

# Tags applied to ``record`` calls that don't pass any explicitly
current_tag_map: ContextVar[Optional[TagMap]] = ContextVar("current_tag_map", default=None)


class Stats:
    """Owns registered views and fans recorded measurements out to them."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._views: Dict[str, View] = {}
        self._measures: Dict[str, Measure] = {}
        self._listeners: List[StatsEventListener] = []
        self._lock = threading.Lock()
        self._producer = StatsMetricProducer(self)

    # Measures

    def create_measure_double(
        self,
        name: str,
        unit: Union[MeasureUnit, str],
        description: str = "",
    ) -> Measure:
        return self._create_measure(name, unit, MeasureType.DOUBLE, description)

    def create_measure_int64(
        self,
        name: str,
        unit: Union[MeasureUnit, str],
        description: str = "",
    ) -> Measure:
        return self._create_measure(name, unit, MeasureType.INT64, description)

    def _create_measure(
        self, name: str, unit: Union[MeasureUnit, str], measure_type: MeasureType, description: str
    ) -> Measure:
        validate_not_null(name, "name")
        validate_not_null(unit, "unit")
        unit_value = unit.value if isinstance(unit, MeasureUnit) else unit
        return Measure(name=name, unit=unit_value, type=measure_type, description=description or "")

    # Views

    def create_view(
        self,
        name: str,
        measure: Measure,
        aggregation: AggregationType,
        tag_keys: Sequence[Union[TagKey, str]],
        description: str = "",
        bucket_boundaries: Optional[Sequence[float]] = None,
    ) -> View:
        """Create an unregistered view. Pass it to ``register_view`` to activate it."""
        return View(
            name,
            measure,
            aggregation,
            tag_keys,
            description,
            bucket_boundaries,
            clock=self._clock,
        )

    def register_view(self, view: View) -> View:
        """Register a view; re-registering a name returns the existing view."""
        validate_not_null(view, "view")
        with self._lock:
            existing = self._views.get(view.name)
            if existing is not None:
                if existing is not view:
                    logger.warning(
                        "A view with the same name is already registered",
                        extra={"view": view.name},
                    )
                return existing
            self._views[view.name] = view
            self._measures.setdefault(view.measure.name, view.measure)
            view.registered = True
            listeners = list(self._listeners)

        logger.info("View registered", extra={"view": view.name, "measure": view.measure.name})
        for listener in listeners:
            listener.on_register_view(view)
        return view

    def get_view(self, name: str) -> Optional[View]:
        with self._lock:
            return self._views.get(name)

    def get_views(self) -> List[View]:
        with self._lock:
            return list(self._views.values())

    def get_views_for_measure(self, measure: Measure) -> List[View]:
        with self._lock:
            return [v for v in self._views.values() if v.measure.name == measure.name]

    # Listeners

    def register_exporter(self, listener: StatsEventListener) -> None:
        validate_not_null(listener, "exporter")
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unregister_exporter(self, listener: StatsEventListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # Recording

    @contextmanager
    def with_tag_context(self, tags: TagMap) -> Generator[TagMap, None, None]:
        """Use ``tags`` for every ``record`` call in this block that passes none."""
        token = current_tag_map.set(tags)
        try:
            yield tags
        finally:
            current_tag_map.reset(token)

    def record(
        self,
        measurements: Iterable[Measurement],
        tags: Optional[Union[TagMap, Mapping]] = None,
        attachments: Optional[Dict[str, str]] = None,
    ) -> bool:
        """Record a batch of measurements against all matching views.

        The batch is applied all-or-nothing: if any value is negative or not
        a finite number the whole batch is discarded. Returns whether the
        batch was recorded. Invalid tags raise ValidationError before any
        view is updated.
        """
        measurements = list(measurements)
        for measurement in measurements:
            reason = _reject_reason(measurement.value)
            if reason is not None:
                logger.debug(
                    "Discarding measurement batch",
                    extra={
                        "measure": measurement.measure.name,
                        "value": measurement.value,
                        "reason": reason,
                        "dropped": len(measurements),
                    },
                )
                return False

        if tags is None:
            tags = current_tag_map.get()
        else:
            tags = _as_tag_map(tags)
        # Invalid tags anywhere in the batch raise before any view is updated
        batch_tags = [
            tags if tags is not None else _as_tag_map(measurement.tags)
            for measurement in measurements
        ]

        with self._lock:
            listeners = list(self._listeners)

        for measurement, measurement_tags in zip(measurements, batch_tags):
            views = self.get_views_for_measure(measurement.measure)
            if not views:
                continue
            for view in views:
                view.record_measurement(measurement, measurement_tags, attachments)
            tag_dict = measurement_tags.tags if measurement_tags is not None else {}
            for listener in listeners:
                listener.on_record(views, measurement, tag_dict)
        return True

    # Export

    def get_metrics(self) -> List[Metric]:
        metrics = []
        for view in self.get_views():
            metric = view.get_metric()
            if metric is not None:
                metrics.append(metric)
        return metrics

    def get_metric_producer(self) -> "StatsMetricProducer":
        return self._producer

    def clear(self) -> None:
        """Forget all views, measures and listeners."""
        with self._lock:
            self._views.clear()
            self._measures.clear()
            self._listeners.clear()


class StatsMetricProducer(MetricProducer):
    """Exposes every registered view's Metric to exporters."""

    def __init__(self, stats: Stats):
        self._stats = stats

    def get_metrics(self) -> List[Metric]:
        return self._stats.get_metrics()


def _reject_reason(value) -> Optional[str]:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return "not a number"
    if isinstance(value, float) and not math.isfinite(value):
        return "not finite"
    if value < 0:
        return "negative"
    return None


def _as_tag_map(tags: Optional[Union[TagMap, Mapping]]) -> Optional[TagMap]:
    if tags is None or isinstance(tags, TagMap):
        return tags
    if isinstance(tags, Mapping):
        return TagMap(tags)
    raise ValidationError(f"Tags must be a TagMap or a mapping, got {type(tags).__name__}")
