"""001_initial — Create quality_metrics.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None

SIGNAL_COLUMNS = [
    "lighthouse_performance",
    "lighthouse_accessibility",
    "lighthouse_best_practices",
    "lighthouse_seo",
    "lighthouse_pwa",
    "lcp",
    "fid",
    "cls",
    "test_unit_total",
    "test_unit_passed",
    "test_unit_failed",
    "test_unit_coverage",
    "test_integration_total",
    "test_integration_passed",
    "test_integration_failed",
    "test_integration_coverage",
    "test_e2e_total",
    "test_e2e_passed",
    "test_e2e_failed",
    "test_e2e_coverage",
    "bundle_size",
    "load_time",
    "ttfb",
    "wcag_score",
    "axe_violations",
]


def upgrade() -> None:
    op.create_table(
        "quality_metrics",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("commit_hash", sa.Text(), nullable=False),
        sa.Column("branch", sa.Text(), nullable=False),
        *[sa.Column(name, sa.Integer(), nullable=True) for name in SIGNAL_COLUMNS],
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_quality_metrics_branch_timestamp",
        "quality_metrics",
        ["branch", "timestamp"],
    )
    op.create_index("ix_quality_metrics_timestamp", "quality_metrics", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_quality_metrics_timestamp", table_name="quality_metrics")
    op.drop_index("ix_quality_metrics_branch_timestamp", table_name="quality_metrics")
    op.drop_table("quality_metrics")
