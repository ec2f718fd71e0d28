"""Data contracts for quality metrics ingestion, queries and dashboard views.

All models serialize with camelCase aliases (commitHash, changePercent,
averageLighthouseScore, ...) and accept camelCase or snake_case on input.
"""

from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


TrendDirection = Literal["up", "down", "stable"]


def to_storage_time(value: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetimes to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    """Naive UTC now, the storage convention for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Metric records
# ---------------------------------------------------------------------------

Score = Optional[int]


class MetricSignals(CamelModel):
    """Optional CI signals shared by inbound payloads and stored rows."""

    # Lighthouse (0-100)
    lighthouse_performance: Score = Field(default=None, ge=0, le=100)
    lighthouse_accessibility: Score = Field(default=None, ge=0, le=100)
    lighthouse_best_practices: Score = Field(default=None, ge=0, le=100)
    lighthouse_seo: Score = Field(default=None, ge=0, le=100)
    lighthouse_pwa: Score = Field(default=None, ge=0, le=100)

    # Core Web Vitals
    lcp: Optional[int] = Field(default=None, ge=0)
    fid: Optional[int] = Field(default=None, ge=0)
    cls: Optional[int] = Field(default=None, ge=0, description="CLS × 1000")

    # Test results, coverage is percent × 100
    test_unit_total: Optional[int] = Field(default=None, ge=0)
    test_unit_passed: Optional[int] = Field(default=None, ge=0)
    test_unit_failed: Optional[int] = Field(default=None, ge=0)
    test_unit_coverage: Optional[int] = Field(default=None, ge=0, le=10000)
    test_integration_total: Optional[int] = Field(default=None, ge=0)
    test_integration_passed: Optional[int] = Field(default=None, ge=0)
    test_integration_failed: Optional[int] = Field(default=None, ge=0)
    test_integration_coverage: Optional[int] = Field(default=None, ge=0, le=10000)
    test_e2e_total: Optional[int] = Field(default=None, ge=0)
    test_e2e_passed: Optional[int] = Field(default=None, ge=0)
    test_e2e_failed: Optional[int] = Field(default=None, ge=0)
    test_e2e_coverage: Optional[int] = Field(default=None, ge=0, le=10000)

    # Performance
    bundle_size: Optional[int] = Field(default=None, ge=0)
    load_time: Optional[int] = Field(default=None, ge=0)
    ttfb: Optional[int] = Field(default=None, ge=0)

    # Accessibility
    wcag_score: Score = Field(default=None, ge=0, le=100)
    axe_violations: Optional[int] = Field(default=None, ge=0)


class MetricRecordCreate(MetricSignals):
    """Inbound payload from a CI run. Only commit and branch are required."""
    id: Optional[str] = None
    commit_hash: str = Field(min_length=1)
    branch: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_storage_time(value)


class MetricRecord(MetricSignals):
    """A stored, immutable CI run snapshot."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True,
        from_attributes=True, frozen=True,
    )

    id: str
    commit_hash: str
    branch: str
    timestamp: datetime
    created_at: datetime


# ---------------------------------------------------------------------------
# Query filters
# ---------------------------------------------------------------------------

class DateRange(CamelModel):
    """Inclusive timestamp window. A reversed window matches nothing."""
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalize(cls, value: datetime) -> datetime:
        return to_storage_time(value)


class MetricsFilter(CamelModel):
    branch: Optional[str] = None
    date_range: Optional[DateRange] = None
    limit: int = Field(default=50, ge=1)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

class Trend(CamelModel):
    """Comparison of one metric between the latest run and its predecessor."""
    metric: str
    current: Union[int, float]
    previous: Union[int, float]
    change: Union[int, float]
    change_percent: float
    trend: TrendDirection


class DashboardOverview(CamelModel):
    latest: Optional[MetricRecord] = None
    trends: list[Trend] = []
    history: list[MetricRecord] = []


class TrendsCount(CamelModel):
    improving: int = 0
    declining: int = 0
    stable: int = 0


class QualityStatistics(CamelModel):
    """Aggregates over the recent window. Always numbers, 0 when empty."""
    average_lighthouse_score: int = 0
    test_success_rate: float = 0.0
    average_load_time: int = 0
    trends_count: TrendsCount = TrendsCount()


# ---------------------------------------------------------------------------
# Quality gate
# ---------------------------------------------------------------------------

class GateCheck(CamelModel):
    name: str
    value: Optional[float] = None
    threshold: float
    passed: bool


class GateResult(CamelModel):
    passed: bool
    record_id: Optional[str] = None
    checks: list[GateCheck] = []

    @property
    def failures(self) -> list[GateCheck]:
        return [c for c in self.checks if not c.passed]


# ---------------------------------------------------------------------------
# CI report parsing
# ---------------------------------------------------------------------------

class TestCaseResult(BaseModel):
    """Individual test case result."""
    __test__ = False  # prevent pytest collection
    name: str
    classname: str = ""
    status: str = Field(description="passed | failed | skipped | error")
    duration_s: float = 0.0
    message: Optional[str] = None


class TestSuiteResult(BaseModel):
    """Aggregated result from a single JUnit XML suite."""
    __test__ = False  # prevent pytest collection
    suite_name: str
    tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    duration_s: float = 0.0
    test_cases: list[TestCaseResult] = []
