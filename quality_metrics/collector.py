"""CI run collector — turns CI artifacts into one MetricRecordCreate.

Reads whatever artifacts the run produced; anything missing stays null:
    JUnit XML per suite       → test_<suite>_total/passed/failed
    coverage summary per suite → test_<suite>_coverage
    Lighthouse JSON            → lighthouse_*, lcp, fid, cls, ttfb, load_time
    axe-core JSON              → axe_violations
    build directory            → bundle_size (sum of .js/.css files)

Commit and branch come from the CI environment (GitHub Actions or GitLab CI)
unless given explicitly.
"""

import json
import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Mapping, Optional

from .parser import (
    parse_axe_report,
    parse_coverage_summary,
    parse_junit_xml,
    parse_lighthouse_report,
    summarize_suites,
)
from .schemas import MetricRecordCreate
from .service import TEST_SUITES

logger = logging.getLogger(__name__)

BUNDLE_SUFFIXES = {".js", ".mjs", ".css"}

# First variable set wins
COMMIT_ENV_VARS = ("QM_COMMIT_HASH", "GITHUB_SHA", "CI_COMMIT_SHA")
BRANCH_ENV_VARS = ("QM_BRANCH", "GITHUB_HEAD_REF", "GITHUB_REF_NAME", "CI_COMMIT_REF_NAME")


@dataclass
class CollectorInputs:
    """Artifact locations for one CI run."""
    junit: dict[str, list[Path]] = field(default_factory=dict)
    coverage: dict[str, Path] = field(default_factory=dict)
    lighthouse: Optional[Path] = None
    axe: Optional[Path] = None
    build_dir: Optional[Path] = None


def _first_env(names: tuple[str, ...], env: Mapping[str, str]) -> Optional[str]:
    for name in names:
        if env.get(name):
            return env[name]
    return None


def pipeline_context(env: Optional[Mapping[str, str]] = None) -> dict:
    """Commit hash and branch from CI environment variables."""
    env = os.environ if env is None else env
    return {
        "commit_hash": _first_env(COMMIT_ENV_VARS, env) or "unknown",
        "branch": _first_env(BRANCH_ENV_VARS, env) or "local",
    }


def _read_artifact(path: Path, parse: Callable[[str], object]):
    """Parse one artifact; unreadable or malformed files are skipped."""
    if not path.is_file():
        logger.warning(f"Artifact not found: {path}")
        return None
    try:
        return parse(path.read_text(encoding="utf-8"))
    except (ET.ParseError, json.JSONDecodeError, ValueError, OSError) as e:
        logger.warning(f"Skipping unreadable artifact {path}: {e}")
        return None


def bundle_size(build_dir: Path) -> Optional[int]:
    """Total size in bytes of JS/CSS files under build_dir."""
    if not build_dir.is_dir():
        logger.warning(f"Build directory not found: {build_dir}")
        return None
    files = [
        p for p in build_dir.rglob("*")
        if p.is_file() and p.suffix in BUNDLE_SUFFIXES
    ]
    if not files:
        return None
    return sum(p.stat().st_size for p in files)


def collect_metrics(
    inputs: CollectorInputs,
    commit_hash: Optional[str] = None,
    branch: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    env: Optional[Mapping[str, str]] = None,
) -> MetricRecordCreate:
    """Build a record from the artifacts of one CI run."""
    context = pipeline_context(env)
    values: dict = {
        "commit_hash": commit_hash or context["commit_hash"],
        "branch": branch or context["branch"],
    }
    if timestamp is not None:
        values["timestamp"] = timestamp

    for suite in TEST_SUITES:
        suites = []
        for path in inputs.junit.get(suite, []):
            suites.extend(_read_artifact(path, parse_junit_xml) or [])
        if suites:
            totals = summarize_suites(suites)
            values[f"test_{suite}_total"] = totals.total
            values[f"test_{suite}_passed"] = totals.passed
            values[f"test_{suite}_failed"] = totals.failed
            logger.info(
                f"{suite}: {totals.total} tests, {totals.passed} passed, "
                f"{totals.failed} failed"
            )

        coverage_path = inputs.coverage.get(suite)
        if coverage_path is not None:
            coverage = _read_artifact(coverage_path, parse_coverage_summary)
            if coverage is not None:
                values[f"test_{suite}_coverage"] = coverage

    if inputs.lighthouse is not None:
        values.update(_read_artifact(inputs.lighthouse, parse_lighthouse_report) or {})

    if inputs.axe is not None:
        violations = _read_artifact(inputs.axe, parse_axe_report)
        if violations is not None:
            values["axe_violations"] = violations

    if inputs.build_dir is not None:
        size = bundle_size(inputs.build_dir)
        if size is not None:
            values["bundle_size"] = size

    record = MetricRecordCreate(**values)
    collected = len(record.model_dump(exclude_none=True)) - 3  # minus identity fields
    logger.info(
        f"Collected {collected} signal(s) for {record.branch}@{record.commit_hash[:8]}"
    )
    return record
