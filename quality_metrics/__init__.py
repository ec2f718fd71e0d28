"""Quality Metrics — CI quality signals with trends and statistics.

One write-once record per CI run (Lighthouse, Web Vitals, test results,
bundle size, load time, accessibility), stored through SQLAlchemy and
aggregated into latest/trend/history/statistics views for a dashboard.
"""

__version__ = "0.1.0"

from .models import Base, QualityMetric
from .database import get_engine, get_session_factory, session_scope, init_db
from .schemas import (
    DashboardOverview,
    DateRange,
    MetricRecord,
    MetricRecordCreate,
    MetricsFilter,
    QualityStatistics,
    Trend,
    TrendsCount,
)
from .store import QualityMetricsStore
from .service import QualityMetricsService, build_service, calculate_trend
from .gate import evaluate_gate, format_gate_report

__all__ = [
    # Models
    "Base",
    "QualityMetric",
    # Database
    "get_engine",
    "get_session_factory",
    "session_scope",
    "init_db",
    # Contracts
    "DashboardOverview",
    "DateRange",
    "MetricRecord",
    "MetricRecordCreate",
    "MetricsFilter",
    "QualityStatistics",
    "Trend",
    "TrendsCount",
    # Store & service
    "QualityMetricsStore",
    "QualityMetricsService",
    "build_service",
    "calculate_trend",
    # Quality gate
    "evaluate_gate",
    "format_gate_report",
]
