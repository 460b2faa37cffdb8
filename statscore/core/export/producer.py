"""Metric producers and the manager exporters poll."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Set

from statscore.core.export.types import Metric
from statscore.core.validation import validate_not_null

logger = logging.getLogger(__name__)


class MetricProducer(ABC):
    """Source of Metrics for exporters (pull model)."""

    @abstractmethod
    def get_metrics(self) -> List[Metric]:
        """Return a point-in-time snapshot of every metric with data."""
        pass


class MetricProducerManager:
    """Set of MetricProducers; membership is by identity.

    One instance lives on the process ``TelemetryContext``; construct
    additional managers only for isolated setups.
    """

    def __init__(self) -> None:
        self._producers: Set[MetricProducer] = set()
        self._lock = threading.Lock()

    def add(self, metric_producer: MetricProducer) -> None:
        validate_not_null(metric_producer, "metricProducer")
        with self._lock:
            self._producers.add(metric_producer)

    def remove(self, metric_producer: MetricProducer) -> None:
        validate_not_null(metric_producer, "metricProducer")
        with self._lock:
            self._producers.discard(metric_producer)

    def remove_all(self) -> None:
        with self._lock:
            self._producers.clear()

    def get_all_metric_producer(self) -> Set[MetricProducer]:
        """The live producer set exporters iterate over."""
        return self._producers

    def collect_all(self) -> List[Metric]:
        """Poll every producer. A failing producer is logged and skipped."""
        with self._lock:
            producers = list(self._producers)

        metrics: List[Metric] = []
        for producer in producers:
            try:
                metrics.extend(producer.get_metrics())
            except Exception as e:
                logger.error(
                    f"Metric producer error: {e}",
                    extra={"producer": type(producer).__name__},
                )
        return metrics
