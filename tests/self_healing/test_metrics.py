"""Tests for HealingMetricsCollector."""

from __future__ import annotations

import pytest

from medic.self_healing.metrics import HealingMetricsCollector
from medic.self_healing.models import ErrorCategory, RegenerationResult, RetryDecision


def _result(success: bool, reason: str = "Standard retry strategy") -> RegenerationResult:
    decision = RetryDecision(should_retry=True, max_attempts=3, next_delay_ms=2000, reason=reason)
    return RegenerationResult(success=success, attempt_number=1, decision=decision)


class TestMetricsCollector:
    def test_record_attempt(self):
        m = HealingMetricsCollector()
        m.record_attempt(ErrorCategory.IMPORT_ERROR)
        m.record_attempt(ErrorCategory.IMPORT_ERROR)
        m.record_attempt(ErrorCategory.TIMEOUT_ERROR)
        metrics = m.get_metrics()
        assert metrics.total_attempts == 3
        assert metrics.by_category["IMPORT_ERROR"] == 2
        assert metrics.by_category["TIMEOUT_ERROR"] == 1

    def test_record_result_fixed(self):
        m = HealingMetricsCollector()
        m.record_result(_result(True), duration_ms=50)
        metrics = m.get_metrics()
        assert metrics.total_fixed == 1
        assert metrics.total_failed == 0
        assert metrics.by_reason["Standard retry strategy"] == 1
        assert metrics.total_duration_ms == 50

    def test_record_result_failed(self):
        m = HealingMetricsCollector()
        m.record_result(_result(False, reason="Repeating error detected - trying different approach"), duration_ms=100)
        metrics = m.get_metrics()
        assert metrics.total_fixed == 0
        assert metrics.total_failed == 1
        assert metrics.by_reason == {"Repeating error detected - trying different approach": 1}

    def test_result_without_decision(self):
        m = HealingMetricsCollector()
        m.record_result(RegenerationResult(success=False, attempt_number=1))
        assert m.get_metrics().by_reason == {}

    def test_success_rate(self):
        m = HealingMetricsCollector()
        for success in (True, False, True):
            m.record_attempt(ErrorCategory.JSX_ERROR)
            m.record_result(_result(success))
        assert m.get_metrics().success_rate == pytest.approx(2 / 3, abs=0.01)

    def test_success_rate_zero_attempts(self):
        m = HealingMetricsCollector()
        assert m.get_metrics().success_rate == 0.0

    def test_refusals_and_stale(self):
        m = HealingMetricsCollector()
        m.record_refusal()
        m.record_refusal()
        m.record_stale()
        metrics = m.get_metrics()
        assert metrics.retries_refused == 2
        assert metrics.stale_discarded == 1

    def test_timer(self):
        m = HealingMetricsCollector()
        m.start_timer("session")
        elapsed = m.stop_timer("session")
        assert elapsed >= 0

    def test_timer_not_started(self):
        m = HealingMetricsCollector()
        assert m.stop_timer("nonexistent") == 0

    def test_reset(self):
        m = HealingMetricsCollector()
        m.record_attempt(ErrorCategory.RUNTIME_ERROR)
        m.record_result(_result(True))
        m.reset()
        metrics = m.get_metrics()
        assert metrics.total_attempts == 0
        assert metrics.total_fixed == 0

    def test_to_dict(self):
        m = HealingMetricsCollector()
        m.record_attempt(ErrorCategory.JSX_ERROR)
        m.record_result(_result(True), duration_ms=25)
        d = m.get_metrics().to_dict()
        assert d["total_attempts"] == 1
        assert d["total_fixed"] == 1
        assert d["success_rate"] == 1.0
        assert d["by_category"] == {"JSX_ERROR": 1}
        assert d["total_duration_ms"] == 25
