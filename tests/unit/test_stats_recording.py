"""Tests for the Stats registrar and recording path."""

import logging
import math
import threading
from unittest.mock import MagicMock

import pytest

from statscore.core.errors import ValidationError
from statscore.core.stats.stats import Stats, current_tag_map
from statscore.core.stats.types import (
    AggregationType,
    Measurement,
    MeasureType,
    MeasureUnit,
    StatsEventListener,
)
from statscore.core.tags import TagKey, TagMap, TagValue


@pytest.fixture
def stats():
    return Stats()


@pytest.fixture
def latency(stats):
    return stats.create_measure_double("latency", MeasureUnit.MS, "Request latency")


@pytest.fixture
def sum_view(stats, latency):
    view = stats.create_view("latency_sum", latency, AggregationType.SUM, ["method"])
    return stats.register_view(view)


def _listener():
    return MagicMock(spec=StatsEventListener)


class TestMeasures:
    """Tests for measure creation."""

    def test_double_measure(self, stats):
        measure = stats.create_measure_double("m", MeasureUnit.SEC, "desc")
        assert measure.type == MeasureType.DOUBLE
        assert measure.unit == "s"
        assert measure.description == "desc"

    def test_int64_measure_with_string_unit(self, stats):
        measure = stats.create_measure_int64("m", "by")
        assert measure.type == MeasureType.INT64
        assert measure.unit == "by"
        assert measure.description == ""

    def test_missing_name(self, stats):
        with pytest.raises(ValidationError):
            stats.create_measure_double(None, MeasureUnit.UNIT)


class TestRegisterView:
    """Tests for view registration."""

    def test_create_view_is_unregistered(self, stats, latency):
        view = stats.create_view("v", latency, AggregationType.COUNT, [])
        assert view.registered is False
        assert stats.get_view("v") is None

    def test_register_marks_view(self, stats, sum_view):
        assert sum_view.registered is True
        assert stats.get_view("latency_sum") is sum_view
        assert stats.get_views() == [sum_view]

    def test_register_twice_is_idempotent(self, stats, sum_view):
        assert stats.register_view(sum_view) is sum_view
        assert len(stats.get_views()) == 1

    def test_same_name_returns_existing(self, stats, latency, sum_view, caplog):
        other = stats.create_view("latency_sum", latency, AggregationType.COUNT, [])
        with caplog.at_level(logging.WARNING, logger="statscore.core.stats.stats"):
            result = stats.register_view(other)
        assert result is sum_view
        assert other.registered is False
        assert "already registered" in caplog.text

    def test_listener_notified_once(self, stats, latency):
        listener = _listener()
        stats.register_exporter(listener)
        view = stats.create_view("v", latency, AggregationType.SUM, [])
        stats.register_view(view)
        stats.register_view(view)
        listener.on_register_view.assert_called_once_with(view)

    def test_views_for_measure(self, stats, latency, sum_view):
        other_measure = stats.create_measure_double("size", MeasureUnit.BYTE)
        other = stats.register_view(stats.create_view("size", other_measure, AggregationType.SUM, []))
        assert stats.get_views_for_measure(latency) == [sum_view]
        assert stats.get_views_for_measure(other_measure) == [other]


class TestRecord:
    """Tests for Stats.record."""

    def test_record_updates_view(self, stats, latency, sum_view):
        assert stats.record([Measurement(latency, 5.0)], {"method": "GET"}) is True
        assert stats.record([Measurement(latency, 2.0)], {"method": "GET"}) is True
        assert sum_view.get_snapshot(["GET"]).value == 7.0

    def test_record_fans_out_to_every_view(self, stats, latency, sum_view):
        count_view = stats.register_view(
            stats.create_view("latency_count", latency, AggregationType.COUNT, [])
        )
        stats.record([Measurement(latency, 5.0), Measurement(latency, 1.0)])
        assert sum_view.get_snapshot([None]).value == 6.0
        assert count_view.get_snapshot([]).value == 2

    @pytest.mark.parametrize("aggregation", [AggregationType.SUM, AggregationType.LAST_VALUE])
    @pytest.mark.parametrize("bad", [-1, -0.5, math.nan, math.inf, -math.inf, None, "1", True])
    def test_invalid_value_discards_whole_batch(self, stats, latency, aggregation, bad):
        view = stats.register_view(
            stats.create_view("latency_view", latency, aggregation, ["method"])
        )
        batch = [Measurement(latency, 3.0), Measurement(latency, bad)]
        assert stats.record(batch, {"method": "GET"}) is False
        assert view.get_metric() is None

    def test_discard_logged_at_debug(self, stats, latency, sum_view, caplog):
        with caplog.at_level(logging.DEBUG, logger="statscore.core.stats.stats"):
            stats.record([Measurement(latency, -1)])
        record = next(r for r in caplog.records if r.message == "Discarding measurement batch")
        assert record.levelno == logging.DEBUG
        assert record.reason == "negative"
        assert record.dropped == 1

    def test_invalid_tags_raise_before_recording(self, stats, latency, sum_view):
        with pytest.raises(ValidationError, match="Invalid TagValue"):
            stats.record([Measurement(latency, 1.0)], {"method": "bad\x01"})
        assert sum_view.get_metric() is None

    def test_invalid_measurement_tags_discard_whole_batch(self, stats, latency, sum_view):
        batch = [Measurement(latency, 1.0), Measurement(latency, 1.0, {"method": "bad\x01"})]
        with pytest.raises(ValidationError, match="Invalid TagValue"):
            stats.record(batch)
        assert sum_view.get_metric() is None

    def test_measurement_mapping_tags_reach_listener(self, stats, latency, sum_view):
        listener = _listener()
        stats.register_exporter(listener)
        measurement = Measurement(latency, 1.0, {"method": "GET"})
        assert stats.record([measurement]) is True

        assert sum_view.get_snapshot(["GET"]).value == 1.0
        listener.on_record.assert_called_once_with(
            [sum_view], measurement, {TagKey("method"): TagValue("GET")}
        )

    def test_unsupported_tags_type(self, stats, latency, sum_view):
        with pytest.raises(ValidationError, match="Tags must be a TagMap or a mapping"):
            stats.record([Measurement(latency, 1.0)], ["GET"])
        assert sum_view.get_metric() is None

    def test_zero_is_accepted(self, stats, latency, sum_view):
        assert stats.record([Measurement(latency, 0)]) is True
        assert sum_view.get_metric() is not None

    def test_measure_without_views(self, stats):
        lonely = stats.create_measure_double("lonely", MeasureUnit.UNIT)
        listener = _listener()
        stats.register_exporter(listener)
        assert stats.record([Measurement(lonely, 1.0)]) is True
        listener.on_record.assert_not_called()

    def test_listener_receives_views_and_tags(self, stats, latency, sum_view):
        listener = _listener()
        stats.register_exporter(listener)
        measurement = Measurement(latency, 5.0)
        stats.record([measurement], TagMap({"method": "GET"}))

        listener.on_record.assert_called_once_with(
            [sum_view], measurement, {TagKey("method"): TagValue("GET")}
        )

    def test_unregistered_listener_not_called(self, stats, latency, sum_view):
        listener = _listener()
        stats.register_exporter(listener)
        stats.unregister_exporter(listener)
        stats.record([Measurement(latency, 1.0)])
        listener.on_record.assert_not_called()

    def test_rejected_batch_not_reported(self, stats, latency, sum_view):
        listener = _listener()
        stats.register_exporter(listener)
        stats.record([Measurement(latency, -1.0)])
        listener.on_record.assert_not_called()


class TestTagContext:
    """Tests for the implicit tag context."""

    def test_context_tags_used(self, stats, latency, sum_view):
        with stats.with_tag_context(TagMap({"method": "GET"})):
            stats.record([Measurement(latency, 1.0)])
        assert sum_view.get_snapshot(["GET"]).value == 1.0

    def test_explicit_tags_win(self, stats, latency, sum_view):
        with stats.with_tag_context(TagMap({"method": "GET"})):
            stats.record([Measurement(latency, 1.0)], {"method": "POST"})
        assert sum_view.get_snapshot(["GET"]) is None
        assert sum_view.get_snapshot(["POST"]).value == 1.0

    def test_context_restored(self, stats):
        with stats.with_tag_context(TagMap({"method": "GET"})):
            pass
        assert current_tag_map.get() is None


class TestStatsExport:
    """Tests for Stats metric production."""

    def test_get_metrics_skips_empty_views(self, stats, latency, sum_view):
        size = stats.create_measure_int64("size", MeasureUnit.BYTE)
        stats.register_view(stats.create_view("size_count", size, AggregationType.COUNT, []))
        stats.record([Measurement(latency, 1.0)], {"method": "GET"})
        assert [m.descriptor.name for m in stats.get_metrics()] == ["latency_sum"]

    def test_empty_views_not_exported(self, stats, sum_view):
        assert stats.get_metrics() == []

    def test_producer(self, stats, latency, sum_view):
        stats.record([Measurement(latency, 1.0)])
        producer = stats.get_metric_producer()
        assert producer is stats.get_metric_producer()
        assert [m.descriptor.name for m in producer.get_metrics()] == ["latency_sum"]

    def test_clear(self, stats, latency, sum_view):
        listener = _listener()
        stats.register_exporter(listener)
        stats.clear()
        assert stats.get_views() == []
        stats.record([Measurement(latency, 1.0)])
        listener.on_record.assert_not_called()


class TestConcurrentRecording:
    """Tests for exporting while other threads record."""

    def test_snapshots_are_consistent(self, stats, latency):
        view = stats.register_view(
            stats.create_view(
                "latency_dist",
                latency,
                AggregationType.DISTRIBUTION,
                ["method"],
                bucket_boundaries=[1, 5, 10],
            )
        )
        writers, per_writer = 4, 500
        done = threading.Event()
        torn = []

        def write(offset):
            for i in range(per_writer):
                stats.record([Measurement(latency, float((i + offset) % 12))], {"method": "GET"})

        def read():
            while not done.is_set():
                metric = view.get_metric()
                if metric is None:
                    continue
                value = metric.timeseries[0].points[0].value
                if sum(b.count for b in value.buckets) != value.count:
                    torn.append(value)

        reader = threading.Thread(target=read)
        reader.start()
        threads = [threading.Thread(target=write, args=(n,)) for n in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        done.set()
        reader.join()

        assert torn == []
        value = view.get_metric().timeseries[0].points[0].value
        assert value.count == writers * per_writer
        assert sum(b.count for b in value.buckets) == writers * per_writer
