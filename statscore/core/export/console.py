"""Logging and JSON exporters."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from statscore.core.export.producer import MetricProducerManager
from statscore.core.export.types import DistributionValue, Metric, Point, TimeSeries
from statscore.core.stats.types import Measurement, StatsEventListener

logger = logging.getLogger(__name__)


class ConsoleStatsExporter(StatsEventListener):
    """Stats listener that writes view registrations and records to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._logger = log or logger

    def on_register_view(self, view) -> None:
        self._logger.info(
            f"Exporter saw view {view.name}",
            extra={"view": view.name, "measure": view.measure.name},
        )

    def on_record(self, views: Sequence, measurement: Measurement, tags: Dict) -> None:
        for view in views:
            self._logger.info(
                f"{view.name} {tags} {measurement.value}",
                extra={
                    "view": view.name,
                    "measure": measurement.measure.name,
                    "value": measurement.value,
                },
            )


class JSONMetricsExporter:
    """Serialize Metric snapshots to JSON.

    With a MetricProducerManager, ``export()`` polls every producer;
    otherwise pass the metrics explicitly.
    """

    def __init__(self, manager: Optional[MetricProducerManager] = None, indent: int = 2):
        self._manager = manager
        self._indent = indent

    def export(self, metrics: Optional[List[Metric]] = None) -> str:
        if metrics is None:
            metrics = self._manager.collect_all() if self._manager is not None else []
        return json.dumps([metric_to_dict(m) for m in metrics], indent=self._indent)


def metric_to_dict(metric: Metric) -> Dict[str, Any]:
    descriptor = metric.descriptor
    return {
        "name": descriptor.name,
        "description": descriptor.description,
        "unit": descriptor.unit,
        "type": descriptor.type.name,
        "label_keys": [key.key for key in descriptor.label_keys],
        "timeseries": [_timeseries_to_dict(ts) for ts in metric.timeseries],
    }


def _timeseries_to_dict(ts: TimeSeries) -> Dict[str, Any]:
    return {
        "label_values": [lv.value for lv in ts.label_values],
        "start_timestamp": ts.start_timestamp.to_seconds() if ts.start_timestamp else None,
        "points": [_point_to_dict(p) for p in ts.points],
    }


def _point_to_dict(point: Point) -> Dict[str, Any]:
    value = point.value
    if isinstance(value, DistributionValue):
        value = {
            "count": value.count,
            "sum": value.sum,
            "sum_of_squared_deviation": value.sum_of_squared_deviation,
            "bounds": list(value.bucket_options.bounds),
            "buckets": [_bucket_to_dict(b.count, b.exemplar) for b in value.buckets],
        }
    return {"value": value, "timestamp": point.timestamp.to_seconds()}


def _bucket_to_dict(count: int, exemplar) -> Mapping[str, Any]:
    data: Dict[str, Any] = {"count": count}
    if exemplar is not None:
        data["exemplar"] = {
            "value": exemplar.value,
            "timestamp": exemplar.timestamp.to_seconds(),
            "attachments": dict(exemplar.attachments),
        }
    return data
