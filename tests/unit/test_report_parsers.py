"""Tests for CI report parsers: JUnit XML, coverage, Lighthouse, axe-core."""
import json
import xml.etree.ElementTree as ET

import pytest

from quality_metrics.parser import (
    parse_axe_report,
    parse_coverage_summary,
    parse_junit_xml,
    parse_lighthouse_report,
    summarize_suites,
)


SAMPLE_JUNIT = """<?xml version="1.0" encoding="utf-8"?>
<testsuites>
  <testsuite name="vitest" errors="0" failures="1" skipped="1" tests="5" time="0.642">
    <testcase classname="src/utils.test.ts" name="formats bytes" time="0.001"/>
    <testcase classname="src/utils.test.ts" name="formats ms" time="0.002"/>
    <testcase classname="src/utils.test.ts" name="parses dates" time="0.001"/>
    <testcase classname="src/api.test.ts" name="rejects bad payload" time="0.003">
      <failure message="expected 422">AssertionError...</failure>
    </testcase>
    <testcase classname="src/api.test.ts" name="slow path" time="0.100">
      <skipped message="slow test"/>
    </testcase>
  </testsuite>
  <testsuite name="vitest-api" errors="1" failures="0" skipped="0" tests="3" time="0.200">
    <testcase classname="src/db.test.ts" name="connects" time="0.010"/>
    <testcase classname="src/db.test.ts" name="migrates" time="0.010"/>
    <testcase classname="src/db.test.ts" name="seeds" time="0.010">
      <error message="ECONNREFUSED"/>
    </testcase>
  </testsuite>
</testsuites>"""

SINGLE_SUITE = """<?xml version="1.0" encoding="utf-8"?>
<testsuite name="playwright" errors="0" failures="0" skipped="0" tests="2" time="4.100">
  <testcase classname="e2e.smoke" name="loads dashboard" time="2.010"/>
  <testcase classname="e2e.smoke" name="shows trends" time="2.005"/>
</testsuite>"""

LIGHTHOUSE_REPORT = {
    "categories": {
        "performance": {"score": 0.87},
        "accessibility": {"score": 0.95},
        "best-practices": {"score": 1},
        "seo": {"score": 0.9},
    },
    "audits": {
        "largest-contentful-paint": {"numericValue": 1234.4},
        "max-potential-fid": {"numericValue": 96},
        "cumulative-layout-shift": {"numericValue": 0.05},
        "server-response-time": {"numericValue": 180.6},
        "interactive": {"numericValue": 2100},
    },
}


# =============================================================================
# TESTS: JUnit
# =============================================================================

class TestJUnitParser:
    """Test JUnit XML parsing."""

    def test_parse_testsuites_wrapper(self):
        suites = parse_junit_xml(SAMPLE_JUNIT)
        assert len(suites) == 2

    def test_suite_counts(self):
        suite = parse_junit_xml(SAMPLE_JUNIT)[0]
        assert suite.tests == 5
        assert suite.passed == 3
        assert suite.failed == 1
        assert suite.skipped == 1
        assert suite.errors == 0

    def test_suite_duration(self):
        suite = parse_junit_xml(SAMPLE_JUNIT)[0]
        assert suite.duration_s == pytest.approx(0.642)

    def test_failed_case(self):
        tc = parse_junit_xml(SAMPLE_JUNIT)[0].test_cases[3]
        assert tc.name == "rejects bad payload"
        assert tc.status == "failed"
        assert tc.message == "expected 422"

    def test_error_case(self):
        tc = parse_junit_xml(SAMPLE_JUNIT)[1].test_cases[2]
        assert tc.status == "error"
        assert tc.message == "ECONNREFUSED"

    def test_skipped_case(self):
        tc = parse_junit_xml(SAMPLE_JUNIT)[0].test_cases[4]
        assert tc.status == "skipped"

    def test_single_suite_format(self):
        suites = parse_junit_xml(SINGLE_SUITE)
        assert len(suites) == 1
        assert suites[0].tests == 2
        assert suites[0].passed == 2
        assert suites[0].suite_name == "playwright"

    def test_unknown_root(self):
        assert parse_junit_xml("<root/>") == []

    def test_malformed(self):
        with pytest.raises(ET.ParseError):
            parse_junit_xml("<testsuite")


class TestSummarizeSuites:

    def test_errors_count_as_failures(self):
        totals = summarize_suites(parse_junit_xml(SAMPLE_JUNIT))
        assert totals.total == 8
        assert totals.passed == 5
        assert totals.failed == 2

    def test_empty(self):
        assert summarize_suites([]) == (0, 0, 0)


# =============================================================================
# TESTS: Coverage
# =============================================================================

class TestCoverageSummary:

    def test_istanbul(self):
        content = json.dumps({"total": {"lines": {"total": 200, "pct": 78.45}}})
        assert parse_coverage_summary(content) == 7845

    def test_coverage_py(self):
        content = json.dumps({"totals": {"percent_covered": 81.2}})
        assert parse_coverage_summary(content) == 8120

    def test_full_coverage(self):
        content = json.dumps({"total": {"lines": {"pct": 100}}})
        assert parse_coverage_summary(content) == 10000

    def test_unknown_pct(self):
        content = json.dumps({"total": {"lines": {"pct": "Unknown"}}})
        assert parse_coverage_summary(content) is None

    def test_no_totals(self):
        assert parse_coverage_summary("{}") is None

    def test_malformed(self):
        with pytest.raises(json.JSONDecodeError):
            parse_coverage_summary("not json")


# =============================================================================
# TESTS: Lighthouse
# =============================================================================

class TestLighthouseReport:

    def test_category_scores(self):
        values = parse_lighthouse_report(json.dumps(LIGHTHOUSE_REPORT))
        assert values["lighthouse_performance"] == 87
        assert values["lighthouse_accessibility"] == 95
        assert values["lighthouse_best_practices"] == 100
        assert values["lighthouse_seo"] == 90

    def test_missing_category_absent(self):
        values = parse_lighthouse_report(json.dumps(LIGHTHOUSE_REPORT))
        assert "lighthouse_pwa" not in values

    def test_vitals(self):
        values = parse_lighthouse_report(json.dumps(LIGHTHOUSE_REPORT))
        assert values["lcp"] == 1234
        assert values["fid"] == 96
        assert values["cls"] == 50
        assert values["ttfb"] == 181
        assert values["load_time"] == 2100

    def test_lhr_wrapper(self):
        values = parse_lighthouse_report(json.dumps({"lhr": LIGHTHOUSE_REPORT}))
        assert values["lighthouse_performance"] == 87

    def test_list_of_runs_uses_first(self):
        second = {"categories": {"performance": {"score": 0.1}}}
        values = parse_lighthouse_report(json.dumps([LIGHTHOUSE_REPORT, second]))
        assert values["lighthouse_performance"] == 87

    def test_empty_list(self):
        assert parse_lighthouse_report("[]") == {}

    def test_null_score_skipped(self):
        report = {"categories": {"performance": {"score": None}}}
        assert parse_lighthouse_report(json.dumps(report)) == {}


# =============================================================================
# TESTS: axe-core
# =============================================================================

class TestAxeReport:

    def test_single_page(self):
        report = {"violations": [{"id": "color-contrast"}, {"id": "label"}]}
        assert parse_axe_report(json.dumps(report)) == 2

    def test_multiple_pages(self):
        pages = [
            {"violations": [{"id": "color-contrast"}]},
            {"violations": [{"id": "label"}, {"id": "image-alt"}]},
        ]
        assert parse_axe_report(json.dumps(pages)) == 3

    def test_no_violations(self):
        assert parse_axe_report(json.dumps({"passes": [{"id": "label"}]})) == 0
