"""Tests for the camelCase data contracts."""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from quality_metrics.schemas import (
    DateRange,
    MetricRecordCreate,
    MetricsFilter,
    to_storage_time,
)


class TestMetricRecordCreate:

    def test_accepts_camel_case(self):
        record = MetricRecordCreate.model_validate({
            "commitHash": "abc123",
            "branch": "main",
            "lighthousePerformance": 90,
            "testUnitCoverage": 7850,
        })
        assert record.commit_hash == "abc123"
        assert record.lighthouse_performance == 90
        assert record.test_unit_coverage == 7850

    def test_accepts_snake_case(self):
        record = MetricRecordCreate(commit_hash="abc", branch="main", load_time=900)
        assert record.load_time == 900

    def test_dumps_camel_case(self):
        data = MetricRecordCreate(commit_hash="abc", branch="main").model_dump(by_alias=True)
        assert "commitHash" in data
        assert "lighthouseBestPractices" in data
        assert "commit_hash" not in data

    def test_timestamp_defaults_to_now(self):
        record = MetricRecordCreate(commit_hash="abc", branch="main")
        assert record.timestamp.tzinfo is None
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        assert abs((now - record.timestamp).total_seconds()) < 60

    @pytest.mark.parametrize("payload", [
        {"branch": "main"},
        {"commitHash": "abc"},
        {"commitHash": "", "branch": "main"},
        {"commitHash": "abc", "branch": ""},
    ])
    def test_identity_required(self, payload):
        with pytest.raises(ValidationError):
            MetricRecordCreate.model_validate(payload)

    @pytest.mark.parametrize("field,value", [
        ("lighthousePerformance", 101),
        ("lighthouseSeo", -1),
        ("testUnitCoverage", 10001),
        ("bundleSize", -5),
        ("wcagScore", 101),
    ])
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            MetricRecordCreate.model_validate({"commitHash": "abc", "branch": "main", field: value})


class TestFilters:

    def test_default_limit(self):
        assert MetricsFilter().limit == 50

    def test_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            MetricsFilter(limit=0)

    def test_reversed_date_range_allowed(self):
        window = DateRange(start=datetime(2026, 2, 1), end=datetime(2026, 1, 1))
        assert window.start > window.end

    def test_date_range_single_instant(self):
        instant = datetime(2026, 1, 1)
        assert DateRange(start=instant, end=instant).start == instant


class TestStorageTime:

    def test_naive_unchanged(self):
        value = datetime(2026, 1, 1, 8, 30)
        assert to_storage_time(value) == value

    def test_none(self):
        assert to_storage_time(None) is None

    def test_aware_converted(self):
        value = datetime.fromisoformat("2026-01-01T10:30:00+02:00")
        assert to_storage_time(value) == datetime(2026, 1, 1, 8, 30)
