"""Tests for engine and session helpers."""
import pytest
from sqlalchemy import text

from quality_metrics.database import get_engine, normalize_url, session_scope
from quality_metrics.models import QualityMetric
from tests.fixtures.records import BASE_TIME


class TestNormalizeUrl:

    def test_postgres_scheme(self):
        assert normalize_url("postgres://u:p@db/qm") == "postgresql+psycopg://u:p@db/qm"

    def test_other_urls_unchanged(self):
        assert normalize_url("sqlite:///data/qm.db") == "sqlite:///data/qm.db"


class TestEngine:

    def test_file_sqlite_creates_directory(self, tmp_path):
        engine = get_engine(f"sqlite:///{tmp_path / 'nested' / 'qm.db'}")
        with engine.connect() as conn:
            mode = conn.execute(text("PRAGMA journal_mode")).scalar()
        engine.dispose()

        assert (tmp_path / "nested").is_dir()
        assert mode == "wal"


class TestSessionScope:

    def test_rollback_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            with session_scope(session_factory) as session:
                session.add(QualityMetric(
                    commit_hash="abc", branch="main", timestamp=BASE_TIME,
                ))
                session.flush()
                raise RuntimeError("boom")

        with session_scope(session_factory) as session:
            assert session.query(QualityMetric).count() == 0
