"""Sample quality metrics for local development and demos.

Three consecutive `main` runs. Re-running the seed skips ids that
already exist.
"""
import logging
from datetime import datetime

from .schemas import MetricRecordCreate
from .store import QualityMetricsStore

logger = logging.getLogger(__name__)


SAMPLE_METRICS = [
    MetricRecordCreate(
        id="sample-1",
        timestamp=datetime(2024, 1, 15),
        commit_hash="abc123def",
        branch="main",
        lighthouse_performance=85,
        lighthouse_accessibility=92,
        lighthouse_best_practices=88,
        lighthouse_seo=95,
        lighthouse_pwa=80,
        lcp=1200,
        fid=80,
        cls=50,
        test_unit_total=120,
        test_unit_passed=115,
        test_unit_failed=5,
        test_unit_coverage=7800,  # 78%
        test_integration_total=25,
        test_integration_passed=24,
        test_integration_failed=1,
        test_integration_coverage=6500,
        test_e2e_total=15,
        test_e2e_passed=14,
        test_e2e_failed=1,
        test_e2e_coverage=5500,
        bundle_size=524288,  # 512 KB
        load_time=1150,
        ttfb=200,
        wcag_score=92,
        axe_violations=2,
    ),
    MetricRecordCreate(
        id="sample-2",
        timestamp=datetime(2024, 1, 14),
        commit_hash="def456ghi",
        branch="main",
        lighthouse_performance=82,
        lighthouse_accessibility=90,
        lighthouse_best_practices=85,
        lighthouse_seo=93,
        lighthouse_pwa=78,
        lcp=1300,
        fid=90,
        cls=60,
        test_unit_total=118,
        test_unit_passed=110,
        test_unit_failed=8,
        test_unit_coverage=7500,
        test_integration_total=24,
        test_integration_passed=22,
        test_integration_failed=2,
        test_integration_coverage=6200,
        test_e2e_total=15,
        test_e2e_passed=13,
        test_e2e_failed=2,
        test_e2e_coverage=5200,
        bundle_size=540672,  # 528 KB
        load_time=1250,
        ttfb=220,
        wcag_score=90,
        axe_violations=3,
    ),
    MetricRecordCreate(
        id="sample-3",
        timestamp=datetime(2024, 1, 13),
        commit_hash="ghi789jkl",
        branch="main",
        lighthouse_performance=88,
        lighthouse_accessibility=94,
        lighthouse_best_practices=90,
        lighthouse_seo=97,
        lighthouse_pwa=82,
        lcp=1100,
        fid=70,
        cls=40,
        test_unit_total=125,
        test_unit_passed=122,
        test_unit_failed=3,
        test_unit_coverage=8200,
        test_integration_total=26,
        test_integration_passed=25,
        test_integration_failed=1,
        test_integration_coverage=6800,
        test_e2e_total=16,
        test_e2e_passed=15,
        test_e2e_failed=1,
        test_e2e_coverage=5800,
        bundle_size=507904,  # 496 KB
        load_time=1050,
        ttfb=180,
        wcag_score=94,
        axe_violations=1,
    ),
]


def seed_sample_metrics(store: QualityMetricsStore) -> int:
    """Insert the sample runs not yet stored. Returns number inserted."""
    inserted = 0
    for sample in SAMPLE_METRICS:
        if store.get(sample.id) is not None:
            logger.debug(f"Sample {sample.id} already present, skipping")
            continue
        store.save(sample)
        inserted += 1

    logger.info(f"Seeded {inserted} sample metric record(s)")
    return inserted
