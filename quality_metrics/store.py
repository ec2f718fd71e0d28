"""Append-only storage for quality metric records.

Every call opens its own short-lived session. Nothing is shared between
calls, so a sequence of reads is not a consistent snapshot.
"""

import logging
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import session_scope
from .models import QualityMetric
from .schemas import MetricRecord, MetricRecordCreate, MetricsFilter

logger = logging.getLogger(__name__)

# Newest first; id breaks timestamp ties so "previous" is deterministic
NEWEST_FIRST = (QualityMetric.timestamp.desc(), QualityMetric.id.desc())


class QualityMetricsStore:
    """SQLAlchemy-backed store for MetricRecords.

    Records are write-once: there is no update or delete path here.
    Storage failures (SQLAlchemyError) are logged and re-raised.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, record: MetricRecordCreate) -> MetricRecord:
        """Insert one record, return the stored row with server defaults."""
        values = record.model_dump(exclude_none=True)
        try:
            with session_scope(self.session_factory) as session:
                row = QualityMetric(**values)
                session.add(row)
                session.flush()
                stored = MetricRecord.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to save metrics for {record.branch}@{record.commit_hash}: {e}"
            )
            raise

        logger.info(
            f"Stored metrics {stored.id} ({stored.branch}@{stored.commit_hash[:8]})"
        )
        return stored

    def query(self, filters: Optional[MetricsFilter] = None) -> list[MetricRecord]:
        """Filtered records, newest first, capped at filters.limit."""
        filters = filters or MetricsFilter()
        stmt = select(QualityMetric)

        if filters.branch:
            stmt = stmt.where(QualityMetric.branch == filters.branch)
        if filters.date_range:
            stmt = stmt.where(
                QualityMetric.timestamp >= filters.date_range.start,
                QualityMetric.timestamp <= filters.date_range.end,
            )

        stmt = stmt.order_by(*NEWEST_FIRST).limit(filters.limit)
        return self._fetch(stmt)

    def get(self, record_id: str) -> Optional[MetricRecord]:
        """Record by id, None if absent."""
        records = self._fetch(select(QualityMetric).where(QualityMetric.id == record_id))
        return records[0] if records else None

    def latest(self, branch: Optional[str] = None) -> Optional[MetricRecord]:
        """Newest record, optionally restricted to a branch."""
        records = self.query(MetricsFilter(branch=branch, limit=1))
        return records[0] if records else None

    def previous(
        self, record: MetricRecord, branch: Optional[str] = None
    ) -> Optional[MetricRecord]:
        """Record immediately after `record` in newest-first order."""
        stmt = select(QualityMetric).where(
            or_(
                QualityMetric.timestamp < record.timestamp,
                and_(
                    QualityMetric.timestamp == record.timestamp,
                    QualityMetric.id < record.id,
                ),
            )
        )
        if branch:
            stmt = stmt.where(QualityMetric.branch == branch)

        records = self._fetch(stmt.order_by(*NEWEST_FIRST).limit(1))
        return records[0] if records else None

    def _fetch(self, stmt) -> list[MetricRecord]:
        try:
            with session_scope(self.session_factory) as session:
                rows = session.scalars(stmt).all()
                records = [MetricRecord.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to query metrics: {e}")
            raise

        logger.debug(f"Fetched {len(records)} metric records")
        return records
