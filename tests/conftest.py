"""
Quality Metrics Test Configuration

Shared fixtures for all tests.
"""
import pytest

from quality_metrics.database import get_engine, get_session_factory, init_db
from quality_metrics.schemas import MetricRecordCreate
from quality_metrics.service import QualityMetricsService
from quality_metrics.store import QualityMetricsStore
from tests.fixtures.records import FULL_SIGNALS, make_record


# =============================================================================
# FIXTURES: Database
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite with schema, shared across threads."""
    eng = get_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def store(session_factory) -> QualityMetricsStore:
    return QualityMetricsStore(session_factory)


@pytest.fixture
def service(store) -> QualityMetricsService:
    return QualityMetricsService(store)


# =============================================================================
# FIXTURES: Sample Data
# =============================================================================

@pytest.fixture
def full_record() -> MetricRecordCreate:
    """A run that produced every signal."""
    return make_record(commit_hash="f00dfacecafe", **FULL_SIGNALS)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove CI and config variables that would leak into tests."""
    for name in (
        "DATABASE_URL", "LOG_LEVEL", "QUALITY_METRICS_CONFIG",
        "QM_COMMIT_HASH", "QM_BRANCH", "GITHUB_SHA", "GITHUB_HEAD_REF",
        "GITHUB_REF_NAME", "CI_COMMIT_SHA", "CI_COMMIT_REF_NAME",
    ):
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
