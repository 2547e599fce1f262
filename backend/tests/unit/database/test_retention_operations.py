#!/usr/bin/env python3
"""Tests for execution result and weather snapshot persistence."""

from datetime import timedelta

from tn_scheduler.enums import ExecutionStatus, WeatherApiSource
from tn_scheduler.models.execution_result_model import ExecutionResult
from tn_scheduler.models.weather_model import WeatherSnapshot
from tn_scheduler.utils.time_utils import utc_now


def make_result(definition_id=None, age_days=0):
    return ExecutionResult(
        definition_id=definition_id,
        prompt="hello",
        response="hi",
        model="test-model",
        status=ExecutionStatus.SUCCESS,
        created_at=utc_now() - timedelta(days=age_days),
    )


def make_snapshot(location_id="tokyo", age_hours=0, error=None):
    return WeatherSnapshot(
        location_id=location_id,
        api_source=WeatherApiSource.WEATHERAPI,
        data=None if error else {"temp": 20},
        error=error,
        fetched_at=utc_now() - timedelta(hours=age_hours),
    )


class TestExecutionResultOperations:
    def test_results_newest_first_and_filtered(self, result_ops):
        old = result_ops.add_result(make_result("a", age_days=2))
        new = result_ops.add_result(make_result("a"))
        result_ops.add_result(make_result("b"))

        assert [r.id for r in result_ops.get_results("a")] == [new.id, old.id]
        assert len(result_ops.get_results()) == 3
        assert len(result_ops.get_results(limit=1)) == 1

    def test_cleanup_older_than(self, result_ops):
        result_ops.add_result(make_result(age_days=100))
        kept = result_ops.add_result(make_result(age_days=1))

        assert result_ops.cleanup_older_than(90) == 1
        assert [r.id for r in result_ops.get_results()] == [kept.id]


class TestWeatherSnapshotOperations:
    def test_latest_skips_errors_by_default(self, snapshot_ops):
        good = snapshot_ops.add_snapshot(make_snapshot(age_hours=2))
        failed = snapshot_ops.add_snapshot(make_snapshot(error="HTTP 500"))

        assert snapshot_ops.get_latest_for_location("tokyo").id == good.id
        assert snapshot_ops.get_latest_for_location("tokyo", include_errors=True).id == failed.id
        assert snapshot_ops.get_latest_for_location("osaka") is None

    def test_cleanup_older_than(self, snapshot_ops):
        snapshot_ops.add_snapshot(make_snapshot(age_hours=24 * 31))
        snapshot_ops.add_snapshot(make_snapshot(age_hours=1))

        assert snapshot_ops.cleanup_older_than(30) == 1
        assert snapshot_ops.cleanup_older_than(30) == 0
