"""SQLAlchemy 2.0 models for CI quality metrics.

One table:
- quality_metrics:  one row per CI run (Lighthouse, Web Vitals, tests,
                    bundle/load performance, accessibility)

Rows are write-once. Every signal column is nullable because not every
CI run produces every signal (no E2E stage → no test_e2e_* values).
Scaled integers: coverage is percent × 100, cls is × 1000. wcag_score is 0-100.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    """Naive UTC now, the storage convention for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Shared declarative base for quality metrics models."""
    pass


class QualityMetric(Base):
    """A single CI run snapshot, keyed by commit and branch."""
    __tablename__ = "quality_metrics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    commit_hash: Mapped[str] = mapped_column(Text, nullable=False)
    branch: Mapped[str] = mapped_column(Text, nullable=False)

    # Lighthouse scores (0-100)
    lighthouse_performance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lighthouse_accessibility: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lighthouse_best_practices: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lighthouse_seo: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lighthouse_pwa: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Core Web Vitals
    lcp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # ms
    fid: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # ms
    cls: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # × 1000

    # Test results
    test_unit_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_unit_passed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_unit_failed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_unit_coverage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_integration_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_integration_passed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_integration_failed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_integration_coverage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_e2e_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_e2e_passed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_e2e_failed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    test_e2e_coverage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Performance
    bundle_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # bytes
    load_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # ms
    ttfb: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # ms

    # Accessibility
    wcag_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    axe_violations: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("ix_quality_metrics_branch_timestamp", "branch", "timestamp"),
        Index("ix_quality_metrics_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<QualityMetric(id='{self.id}', "
            f"branch='{self.branch}', "
            f"commit='{self.commit_hash[:8]}', "
            f"timestamp={self.timestamp})>"
        )
