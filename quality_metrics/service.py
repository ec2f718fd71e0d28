"""Quality metrics aggregation: latest run, trends and rolling statistics.

Usage:
    store = QualityMetricsStore(get_session_factory(engine))
    service = QualityMetricsService(store)
    service.get_dashboard_overview("main")
    service.get_statistics("main")

The service is stateless. Multi-step views (trends, dashboard) issue
independent queries and are not a consistent snapshot: a save that lands
between them can make `latest` and `history` disagree.
Storage errors are not caught here.
"""
import logging
import math
from typing import Callable, Optional

from .config import ServiceSettings
from .schemas import (
    DashboardOverview,
    MetricRecord,
    MetricRecordCreate,
    MetricsFilter,
    QualityStatistics,
    Trend,
    TrendsCount,
)
from .store import QualityMetricsStore

logger = logging.getLogger(__name__)

DEFAULT_TREND_THRESHOLD = 2.0  # percent
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_STATISTICS_WINDOW = 10

LIGHTHOUSE_BLEND = (
    "lighthouse_performance",
    "lighthouse_accessibility",
    "lighthouse_best_practices",
    "lighthouse_seo",
)
TEST_SUITES = ("unit", "integration", "e2e")

# (label, extractor, lower_is_better)
TRACKED_METRICS: tuple[tuple[str, Callable[[MetricRecord], Optional[float]], bool], ...] = (
    ("Lighthouse Performance", lambda m: m.lighthouse_performance, False),
    (
        "Test Coverage",
        lambda m: m.test_unit_coverage / 100 if m.test_unit_coverage is not None else None,
        False,
    ),
    ("Bundle Size", lambda m: m.bundle_size, True),
    ("Load Time", lambda m: m.load_time, True),
)

_INVERTED = {"up": "down", "down": "up", "stable": "stable"}


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going toward +inf (2.5 → 3, -2.5 → -2)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def calculate_trend(
    metric: str,
    current: float,
    previous: float,
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> Trend:
    """Compare two values of one metric.

    change_percent is 0 when previous is 0, which classifies as stable.
    """
    change = current - previous
    change_percent = (change / previous) * 100 if previous != 0 else 0.0

    direction = "stable"
    if abs(change_percent) > threshold:
        direction = "up" if change > 0 else "down"

    return Trend(
        metric=metric,
        current=current,
        previous=previous,
        change=change,
        change_percent=round_half_up(change_percent, 2),
        trend=direction,
    )


def lighthouse_average(record: MetricRecord) -> float:
    """Mean of the present blend scores, 0 if none are present."""
    scores = [getattr(record, f) for f in LIGHTHOUSE_BLEND]
    scores = [s for s in scores if s is not None]
    return sum(scores) / len(scores) if scores else 0.0


def suite_success_rate(record: MetricRecord) -> float:
    """Passed/total over all suites in percent; 100 when no tests ran."""
    total = sum(getattr(record, f"test_{s}_total") or 0 for s in TEST_SUITES)
    passed = sum(getattr(record, f"test_{s}_passed") or 0 for s in TEST_SUITES)
    return (passed / total) * 100 if total > 0 else 100.0


class QualityMetricsService:
    """Turns raw metric records into latest/trend/statistics views."""

    def __init__(
        self,
        store: QualityMetricsStore,
        trend_threshold: float = DEFAULT_TREND_THRESHOLD,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        statistics_window: int = DEFAULT_STATISTICS_WINDOW,
        missing_load_time_as_zero: bool = True,
    ):
        self.store = store
        self.trend_threshold = trend_threshold
        self.history_limit = history_limit
        self.statistics_window = statistics_window
        self.missing_load_time_as_zero = missing_load_time_as_zero

    # ------------------------------------------------------------------
    # Store pass-throughs
    # ------------------------------------------------------------------

    def save_metrics(self, record: MetricRecordCreate) -> MetricRecord:
        return self.store.save(record)

    def get_metrics(self, filters: Optional[MetricsFilter] = None) -> list[MetricRecord]:
        return self.store.query(filters)

    def get_latest(self, branch: Optional[str] = None) -> Optional[MetricRecord]:
        return self.store.latest(branch)

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def get_trends(self, branch: Optional[str] = None) -> list[Trend]:
        """Compare the latest record with its predecessor.

        Metrics missing on either side are skipped. Bundle size and load
        time are inverted: a decrease is reported as "up".
        """
        latest = self.store.latest(branch)
        if latest is None:
            return []

        previous = self.store.previous(latest, branch)
        if previous is None:
            return []

        trends = []
        for label, extract, lower_is_better in TRACKED_METRICS:
            current_value = extract(latest)
            previous_value = extract(previous)
            if current_value is None or previous_value is None:
                continue

            trend = calculate_trend(
                label, current_value, previous_value, self.trend_threshold
            )
            if lower_is_better:
                trend = trend.model_copy(update={"trend": _INVERTED[trend.trend]})
            trends.append(trend)

        logger.debug(
            f"Trends for {branch or 'all branches'}: "
            f"{latest.id} vs {previous.id}, {len(trends)} metrics"
        )
        return trends

    # ------------------------------------------------------------------
    # Dashboard views
    # ------------------------------------------------------------------

    def get_dashboard_overview(self, branch: Optional[str] = None) -> DashboardOverview:
        latest = self.get_latest(branch)
        trends = self.get_trends(branch)
        history = self.store.query(
            MetricsFilter(branch=branch, limit=self.history_limit)
        )
        return DashboardOverview(latest=latest, trends=trends, history=history)

    def get_statistics(self, branch: Optional[str] = None) -> QualityStatistics:
        """Aggregates over the most recent `statistics_window` records."""
        metrics = self.store.query(
            MetricsFilter(branch=branch, limit=self.statistics_window)
        )
        if not metrics:
            return QualityStatistics()

        avg_lighthouse = sum(lighthouse_average(m) for m in metrics) / len(metrics)
        avg_success = sum(suite_success_rate(m) for m in metrics) / len(metrics)

        trends_count = TrendsCount()
        for trend in self.get_trends(branch):
            if trend.trend == "up":
                trends_count.improving += 1
            elif trend.trend == "down":
                trends_count.declining += 1
            else:
                trends_count.stable += 1

        return QualityStatistics(
            average_lighthouse_score=int(round_half_up(avg_lighthouse)),
            test_success_rate=round_half_up(avg_success, 2),
            average_load_time=int(round_half_up(self._average_load_time(metrics))),
            trends_count=trends_count,
        )

    def _average_load_time(self, metrics: list[MetricRecord]) -> float:
        if self.missing_load_time_as_zero:
            return sum(m.load_time or 0 for m in metrics) / len(metrics)

        present = [m.load_time for m in metrics if m.load_time is not None]
        return sum(present) / len(present) if present else 0.0


def build_service(store: QualityMetricsStore, settings: Optional[ServiceSettings] = None) -> QualityMetricsService:
    """Service configured from ServiceSettings (defaults when omitted)."""
    settings = settings or ServiceSettings()
    return QualityMetricsService(
        store,
        trend_threshold=settings.trend_threshold,
        history_limit=settings.history_limit,
        statistics_window=settings.statistics_window,
        missing_load_time_as_zero=settings.missing_load_time_as_zero,
    )
