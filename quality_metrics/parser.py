"""Parsers for CI report artifacts.

- JUnit XML            → test counts per suite
- coverage-summary     → coverage percent × 100 (Istanbul/Vitest, coverage.py)
- Lighthouse JSON      → category scores 0-100 and Web Vitals
- axe-core JSON        → violation count

All parsers take the raw file content. Malformed input raises
(ET.ParseError / json.JSONDecodeError); missing values come back as None.
"""

import json
import xml.etree.ElementTree as ET
from typing import NamedTuple, Optional

from .schemas import TestCaseResult, TestSuiteResult


class SuiteTotals(NamedTuple):
    total: int
    passed: int
    failed: int


# Lighthouse category id → record field
LIGHTHOUSE_CATEGORIES = {
    "performance": "lighthouse_performance",
    "accessibility": "lighthouse_accessibility",
    "best-practices": "lighthouse_best_practices",
    "seo": "lighthouse_seo",
    "pwa": "lighthouse_pwa",
}

# Lighthouse audit id → (record field, scale)
LIGHTHOUSE_AUDITS = {
    "largest-contentful-paint": ("lcp", 1),
    "max-potential-fid": ("fid", 1),
    "cumulative-layout-shift": ("cls", 1000),
    "server-response-time": ("ttfb", 1),
    "interactive": ("load_time", 1),
}


def _scaled(value: float, scale: int) -> int:
    return int(value * scale + 0.5)


# ---------------------------------------------------------------------------
# JUnit
# ---------------------------------------------------------------------------

def parse_junit_xml(xml_content: str) -> list[TestSuiteResult]:
    """Parse JUnit XML content into structured test results.

    Handles both single <testsuite> and <testsuites> wrapper formats.
    """
    root = ET.fromstring(xml_content)
    suites = []

    # Handle both <testsuites><testsuite>... and standalone <testsuite>
    if root.tag == "testsuites":
        suite_elements = root.findall("testsuite")
    elif root.tag == "testsuite":
        suite_elements = [root]
    else:
        return suites

    for suite_el in suite_elements:
        test_cases = []

        for tc_el in suite_el.findall("testcase"):
            status, msg = "passed", None
            for tag, tag_status in (("failure", "failed"), ("error", "error"), ("skipped", "skipped")):
                child = tc_el.find(tag)
                if child is not None:
                    status, msg = tag_status, child.get("message", "")
                    break

            test_cases.append(TestCaseResult(
                name=tc_el.get("name", "unknown"),
                classname=tc_el.get("classname", ""),
                status=status,
                duration_s=float(tc_el.get("time", 0)),
                message=msg,
            ))

        # Counts from attributes (more reliable) or derive from test cases
        tests = int(suite_el.get("tests", len(test_cases)))
        failures = int(suite_el.get("failures", 0))
        errors = int(suite_el.get("errors", 0))
        skipped = int(suite_el.get("skipped", 0))

        suites.append(TestSuiteResult(
            suite_name=suite_el.get("name", "unknown"),
            tests=tests,
            passed=tests - failures - errors - skipped,
            failed=failures,
            skipped=skipped,
            errors=errors,
            duration_s=float(suite_el.get("time", 0)),
            test_cases=test_cases,
        ))

    return suites


def summarize_suites(suites: list[TestSuiteResult]) -> SuiteTotals:
    """Collapse suites into one total. Errors count as failures."""
    return SuiteTotals(
        total=sum(s.tests for s in suites),
        passed=sum(s.passed for s in suites),
        failed=sum(s.failed + s.errors for s in suites),
    )


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------

def parse_coverage_summary(json_content: str) -> Optional[int]:
    """Line coverage as percent × 100, or None if the report has no figure.

    Accepts Istanbul's coverage-summary.json (total.lines.pct) and
    coverage.py's `coverage json` output (totals.percent_covered).
    """
    data = json.loads(json_content)

    pct = None
    if "total" in data:
        pct = data["total"].get("lines", {}).get("pct")
    elif "totals" in data:
        pct = data["totals"].get("percent_covered")

    # Istanbul reports "Unknown" when there are no lines
    if not isinstance(pct, (int, float)):
        return None
    return _scaled(pct, 100)


# ---------------------------------------------------------------------------
# Lighthouse
# ---------------------------------------------------------------------------

def parse_lighthouse_report(json_content: str) -> dict:
    """Extract scores and vitals from a Lighthouse result (LHR).

    Accepts a bare LHR, an object wrapping it under "lhr", or a list of
    runs (the first run is used). Only fields present in the report are
    returned.
    """
    data = json.loads(json_content)
    if isinstance(data, list):
        if not data:
            return {}
        data = data[0]
    if "lhr" in data:
        data = data["lhr"]

    values = {}
    for category, field in LIGHTHOUSE_CATEGORIES.items():
        score = data.get("categories", {}).get(category, {}).get("score")
        if score is not None:
            values[field] = _scaled(score, 100)

    for audit, (field, scale) in LIGHTHOUSE_AUDITS.items():
        numeric = data.get("audits", {}).get(audit, {}).get("numericValue")
        if numeric is not None:
            values[field] = _scaled(numeric, scale)

    return values


# ---------------------------------------------------------------------------
# axe-core
# ---------------------------------------------------------------------------

def parse_axe_report(json_content: str) -> int:
    """Number of accessibility violations (summed across pages)."""
    data = json.loads(json_content)
    results = data if isinstance(data, list) else [data]
    return sum(len(r.get("violations", [])) for r in results)
