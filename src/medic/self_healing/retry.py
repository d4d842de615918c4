"""Retry decisions over a session's attempt history.

Rule order (first match wins):

1. terminal     - attempt_number >= max_attempts, stop
2. repeating    - same signature as the previous attempt, retry with a change-of-approach hint
3. oscillating  - A -> B -> A, stop and hand over to a human
4. minor        - severity minor, at most 2 attempts
5. confidence   - confidence below threshold, at most 2 attempts, suggest full regeneration
6. standard     - exponential backoff
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass

from medic.capture.models import PreviewError
from medic.self_healing.models import (
    DiagnosticReport,
    RetryDecision,
    RetryHistoryEntry,
    Severity,
)
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
LIMITED_ATTEMPTS = 2
BACKOFF_BASE_MS = 2000
BACKOFF_CAP_MS = 8000
HISTORY_SIZE = 10
LOW_CONFIDENCE_THRESHOLD = 60

REASON_MAX_ATTEMPTS = "Maximum retry attempts reached - manual intervention required"
REASON_REPEATING = "Repeating error detected - trying different approach"
REASON_OSCILLATING = "Oscillating errors detected - manual intervention required"
REASON_MINOR = "Minor error - limited retry attempts"
REASON_LOW_CONFIDENCE = "Low confidence diagnosis - limiting retries"
REASON_STANDARD = "Standard retry strategy"

HINT_SIMPLER = "Use simpler implementation, avoid complex patterns"
HINT_FULL_REGENERATION = "Consider full regeneration instead of targeted fix"


@dataclass
class RetryStatistics:
    total_attempts: int = 0
    successful_fixes: int = 0
    failed_fixes: int = 0
    success_rate: float = 0.0
    average_attempts_to_fix: float = 0.0


@dataclass
class PatternAnalysis:
    most_common_error: str = "None"
    most_common_category: str = "None"
    average_confidence: float = 0.0
    patterns: list[str] | None = None


class RetryStrategist:
    """Decides whether and when to retry, keyed by session id."""

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_base_ms: int = BACKOFF_BASE_MS,
        backoff_cap_ms: int = BACKOFF_CAP_MS,
        history_size: int = HISTORY_SIZE,
        low_confidence_threshold: int = LOW_CONFIDENCE_THRESHOLD,
    ) -> None:
        self.max_attempts = max_attempts
        self.backoff_base_ms = backoff_base_ms
        self.backoff_cap_ms = backoff_cap_ms
        self.low_confidence_threshold = low_confidence_threshold
        self._history_size = history_size
        self._history: dict[str, deque[RetryHistoryEntry]] = {}

    def determine_strategy(self, error: PreviewError, report: DiagnosticReport, session_id: str) -> RetryDecision:
        history = self.get_history(session_id)
        attempt = error.attempt_number

        if attempt >= self.max_attempts:
            decision = self._stop(self.max_attempts, REASON_MAX_ATTEMPTS)
        elif _is_repeating(history, error):
            decision = RetryDecision(
                should_retry=True,
                max_attempts=self.max_attempts,
                next_delay_ms=self.backoff(attempt),
                reason=REASON_REPEATING,
                change_strategy=HINT_SIMPLER,
            )
        elif _is_oscillating(history, error):
            decision = self._stop(self.max_attempts, REASON_OSCILLATING)
        elif report.severity is Severity.MINOR:
            decision = self._limited(attempt, REASON_MINOR)
        elif report.confidence < self.low_confidence_threshold:
            decision = self._limited(attempt, REASON_LOW_CONFIDENCE, HINT_FULL_REGENERATION)
        else:
            decision = RetryDecision(
                should_retry=True,
                max_attempts=self.max_attempts,
                next_delay_ms=self.backoff(attempt),
                reason=REASON_STANDARD,
            )

        logger.debug(
            "retry_strategy_decided",
            session_id=session_id,
            attempt=attempt,
            should_retry=decision.should_retry,
            reason=decision.reason,
            delay_ms=decision.next_delay_ms,
        )
        return decision

    def backoff(self, attempt_number: int) -> int:
        """Exponential delay for the given attempt: base, 2*base, 4*base... up to the cap."""
        exponent = max(0, attempt_number - 1)
        return min(self.backoff_base_ms * 2**exponent, self.backoff_cap_ms)

    def record_attempt(
        self,
        session_id: str,
        error: PreviewError,
        report: DiagnosticReport,
        fix_applied: str,
        success: bool,
    ) -> RetryHistoryEntry:
        entry = RetryHistoryEntry(
            attempt_number=error.attempt_number,
            error=error,
            report=report,
            fix_applied=fix_applied,
            success=success,
        )
        history = self._history.setdefault(session_id, deque(maxlen=self._history_size))
        history.append(entry)
        return entry

    def get_history(self, session_id: str) -> list[RetryHistoryEntry]:
        return list(self._history.get(session_id, ()))

    def clear_history(self, session_id: str) -> None:
        self._history.pop(session_id, None)

    def get_statistics(self, session_id: str) -> RetryStatistics:
        history = self.get_history(session_id)
        if not history:
            return RetryStatistics()

        successful = sum(1 for entry in history if entry.success)
        return RetryStatistics(
            total_attempts=len(history),
            successful_fixes=successful,
            failed_fixes=len(history) - successful,
            success_rate=successful / len(history) * 100,
            average_attempts_to_fix=len(history) / successful if successful else 0.0,
        )

    def analyze_patterns(self, session_id: str) -> PatternAnalysis:
        history = self.get_history(session_id)
        if not history:
            return PatternAnalysis(patterns=[])

        error_counts = Counter(entry.error.type.value for entry in history)
        category_counts = Counter(entry.report.category.value for entry in history)

        patterns = []
        if _has_repeating(history):
            patterns.append("Repeating errors detected")
        if _has_oscillating(history):
            patterns.append("Oscillating errors detected")
        if _has_progressive_improvement(history):
            patterns.append("Progressive improvement - errors becoming less severe")
        if _is_stuck(history):
            patterns.append("Stuck on same error - need different approach")

        return PatternAnalysis(
            most_common_error=error_counts.most_common(1)[0][0],
            most_common_category=category_counts.most_common(1)[0][0],
            average_confidence=sum(entry.report.confidence for entry in history) / len(history),
            patterns=patterns,
        )

    def _stop(self, max_attempts: int, reason: str) -> RetryDecision:
        return RetryDecision(should_retry=False, max_attempts=max_attempts, next_delay_ms=0, reason=reason)

    def _limited(self, attempt: int, reason: str, hint: str | None = None) -> RetryDecision:
        should_retry = attempt < LIMITED_ATTEMPTS
        return RetryDecision(
            should_retry=should_retry,
            max_attempts=LIMITED_ATTEMPTS,
            next_delay_ms=self.backoff(attempt) if should_retry else 0,
            reason=reason,
            change_strategy=hint,
        )


def _is_repeating(history: list[RetryHistoryEntry], error: PreviewError) -> bool:
    return bool(history) and history[-1].error.signature == error.signature


def _is_oscillating(history: list[RetryHistoryEntry], error: PreviewError) -> bool:
    if len(history) < 2:
        return False
    return history[-2].error.signature == error.signature and history[-1].error.signature != error.signature


def _has_repeating(history: list[RetryHistoryEntry]) -> bool:
    if len(history) < 3:
        return False
    first, second, third = (entry.error.signature for entry in history[-3:])
    return first == second or second == third


def _has_oscillating(history: list[RetryHistoryEntry]) -> bool:
    if len(history) < 3:
        return False
    first, second, third = (entry.error.type for entry in history[-3:])
    return first is third and first is not second


def _has_progressive_improvement(history: list[RetryHistoryEntry]) -> bool:
    if len(history) < 3:
        return False
    first, second, third = (entry.report.severity.score for entry in history[-3:])
    return first > second >= third


def _is_stuck(history: list[RetryHistoryEntry]) -> bool:
    if len(history) < 2:
        return False
    previous, last = history[-2:]
    return previous.error.signature == last.error.signature and not previous.success and not last.success
