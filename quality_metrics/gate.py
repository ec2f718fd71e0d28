"""Quality gate: pass/fail thresholds for the newest run of a branch.

Checks (defaults from config.GateThresholds):
  - Unit coverage      >= 10 %
  - Test count         >= 50   (unit + integration + e2e)
  - Lighthouse perf    >= 60

A signal that the run did not produce fails its check.
"""
import logging
from typing import Optional

from .config import GateThresholds
from .schemas import GateCheck, GateResult, MetricRecord
from .service import TEST_SUITES

logger = logging.getLogger(__name__)


def _total_tests(record: MetricRecord) -> Optional[int]:
    totals = [getattr(record, f"test_{s}_total") for s in TEST_SUITES]
    present = [t for t in totals if t is not None]
    return sum(present) if present else None


def _check(name: str, value: Optional[float], threshold: float) -> GateCheck:
    return GateCheck(
        name=name,
        value=value,
        threshold=threshold,
        passed=value is not None and value >= threshold,
    )


def evaluate_gate(
    record: Optional[MetricRecord],
    thresholds: Optional[GateThresholds] = None,
) -> GateResult:
    """Evaluate all checks against one record. No record → failed gate."""
    thresholds = thresholds or GateThresholds()
    if record is None:
        logger.warning("Quality gate: no metrics recorded")
        return GateResult(passed=False)

    coverage = (
        record.test_unit_coverage / 100
        if record.test_unit_coverage is not None else None
    )
    checks = [
        _check("Coverage", coverage, thresholds.min_coverage),
        _check("Test Count", _total_tests(record), thresholds.min_tests),
        _check("Performance", record.lighthouse_performance, thresholds.min_performance),
    ]
    result = GateResult(
        passed=all(c.passed for c in checks),
        record_id=record.id,
        checks=checks,
    )

    logger.info(
        f"Quality gate for {record.branch}@{record.commit_hash[:8]}: "
        f"{'passed' if result.passed else f'{len(result.failures)} failure(s)'}"
    )
    return result


def format_gate_report(result: GateResult) -> str:
    """Markdown report, suitable for a PR comment."""
    lines = [
        "## 📊 Quality Report",
        "",
        "| Metric | Value | Threshold | Status |",
        "|--------|-------|-----------|--------|",
    ]
    for check in result.checks:
        value = "n/a" if check.value is None else f"{check.value:g}"
        status = "✅" if check.passed else "❌"
        lines.append(f"| {check.name} | {value} | ≥{check.threshold:g} | {status} |")

    if not result.checks:
        lines.append("| - | no metrics recorded | - | ❌ |")

    lines += [
        "",
        f"**Quality Gate:** {'✅ **PASSED**' if result.passed else '❌ **FAILED**'}",
    ]
    return "\n".join(lines)
