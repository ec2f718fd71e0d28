"""Tests for the quality gate and its Markdown report."""
from quality_metrics.config import GateThresholds
from quality_metrics.gate import evaluate_gate, format_gate_report
from tests.fixtures.records import make_record


def _checks(result):
    return {c.name: c for c in result.checks}


class TestEvaluateGate:

    def test_passing_run(self, store, full_record):
        stored = store.save(full_record)
        result = evaluate_gate(stored)

        assert result.passed is True
        assert result.record_id == stored.id
        assert result.failures == []
        checks = _checks(result)
        assert checks["Coverage"].value == 78
        assert checks["Test Count"].value == 160
        assert checks["Performance"].value == 85

    def test_no_record_fails(self):
        result = evaluate_gate(None)
        assert result.passed is False
        assert result.record_id is None
        assert result.checks == []

    def test_low_coverage(self, store):
        stored = store.save(make_record(
            test_unit_coverage=500, test_unit_total=60, lighthouse_performance=90,
        ))
        result = evaluate_gate(stored)

        assert result.passed is False
        assert [c.name for c in result.failures] == ["Coverage"]

    def test_threshold_is_inclusive(self, store):
        stored = store.save(make_record(
            test_unit_coverage=1000, test_unit_total=50, lighthouse_performance=60,
        ))
        assert evaluate_gate(stored).passed is True

    def test_missing_signal_fails(self, store):
        stored = store.save(make_record(test_unit_coverage=9000, test_unit_total=100))
        result = evaluate_gate(stored)

        performance = _checks(result)["Performance"]
        assert performance.value is None
        assert performance.passed is False

    def test_tests_counted_across_suites(self, store):
        stored = store.save(make_record(
            test_unit_coverage=9000, lighthouse_performance=90,
            test_unit_total=20, test_integration_total=20, test_e2e_total=10,
        ))
        assert _checks(evaluate_gate(stored))["Test Count"].value == 50

    def test_custom_thresholds(self, store, full_record):
        stored = store.save(full_record)
        result = evaluate_gate(stored, GateThresholds(min_coverage=80, min_performance=90))

        assert {c.name for c in result.failures} == {"Coverage", "Performance"}


class TestGateReport:

    def test_passed_report(self, store, full_record):
        report = format_gate_report(evaluate_gate(store.save(full_record)))

        assert report.startswith("## 📊 Quality Report")
        assert "| Coverage | 78 | ≥10 | ✅ |" in report
        assert "| Test Count | 160 | ≥50 | ✅ |" in report
        assert "**Quality Gate:** ✅ **PASSED**" in report

    def test_failed_report_shows_missing_value(self, store):
        report = format_gate_report(evaluate_gate(store.save(make_record())))

        assert "| Performance | n/a | ≥60 | ❌ |" in report
        assert "❌ **FAILED**" in report

    def test_no_metrics(self):
        report = format_gate_report(evaluate_gate(None))
        assert "no metrics recorded" in report
        assert "❌ **FAILED**" in report
