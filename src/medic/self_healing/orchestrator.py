"""Self-heal orchestrator: diagnosis, retry policy, corrective prompt and regeneration."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

from medic.capture.models import ErrorContext, GeneratedFile, PreviewError
from medic.capture.monitor import ErrorMonitor
from medic.capture.watchdog import LoadWatchdog
from medic.self_healing.classifier import ErrorClassifier
from medic.self_healing.config import SelfHealConfig
from medic.self_healing.context import ContextPreserver
from medic.self_healing.metrics import HealingMetrics, HealingMetricsCollector
from medic.self_healing.models import DiagnosticReport, HealState, RegenerationResult, RetryDecision
from medic.self_healing.prompts import PromptSynthesizer
from medic.self_healing.regenerator import IRegenerator, RegenerationRequest, describe_fix
from medic.self_healing.retry import RetryStatistics, RetryStrategist
from medic.self_healing.suggestions import generate_suggestions
from medic.shared.domain.exceptions import RegenerationError
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

StateListener = Callable[[str, HealState], Any]
SleepFunc = Callable[[float], Awaitable[Any]]

_tokens = itertools.count(1)


@dataclass
class HealingSession:
    """One generation-and-repair lifecycle.

    Owns its error monitor and heal state. Retry history and preservation
    context live in the orchestrator, keyed by ``session_id``.
    """

    session_id: str
    original_prompt: str
    files: list[GeneratedFile]
    monitor: ErrorMonitor
    state: HealState = field(default_factory=HealState)
    token: int = field(default_factory=lambda: next(_tokens))

    def error_context(self, preview_url: str = "", bundled_code: str = "") -> ErrorContext:
        return ErrorContext(
            generated_files=list(self.files),
            bundled_code=bundled_code,
            preview_url=preview_url,
            user_prompt=self.original_prompt,
        )

    def apply_files(self, regenerated: list[GeneratedFile]) -> None:
        """Replace files by path and append new ones."""
        by_path = {f.path: f for f in regenerated}
        merged = [by_path.pop(f.path, f) for f in self.files]
        merged.extend(by_path.values())
        self.files = merged


class SelfHealOrchestrator:
    """Coordinates classification, retry policy, prompts and the regenerator.

    Flow of one attempt:
    1. Refuse if the session already has an attempt in flight
    2. Diagnose (classifier + fix catalog)
    3. Retry decision; stop with a reason when it says no
    4. Move failing files out of the preserved working set
    5. Wait out the backoff
    6. Build the corrective prompt and call the regenerator
    7. Discard the response if the session was cleared meanwhile
    8. Record the outcome in history, context and metrics
    """

    def __init__(
        self,
        regenerator: IRegenerator,
        config: SelfHealConfig | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._config = config or SelfHealConfig()
        self._regenerator = regenerator
        self._sleep = sleep
        self._classifier = ErrorClassifier(context_lines=self._config.context_lines)
        self._strategist = RetryStrategist(
            max_attempts=self._config.max_attempts,
            backoff_base_ms=self._config.backoff_base_ms,
            backoff_cap_ms=self._config.backoff_cap_ms,
            history_size=self._config.history_size,
            low_confidence_threshold=self._config.low_confidence_threshold,
        )
        self._preserver = ContextPreserver()
        self._synthesizer = PromptSynthesizer()
        self._metrics = HealingMetricsCollector()
        self._sessions: dict[str, HealingSession] = {}
        self._listeners: list[StateListener] = []

    @property
    def config(self) -> SelfHealConfig:
        return self._config

    @property
    def strategist(self) -> RetryStrategist:
        return self._strategist

    @property
    def preserver(self) -> ContextPreserver:
        return self._preserver

    # ── sessions ──────────────────────────────────────────────────────

    def create_session(self, session_id: str, prompt: str, files: list[GeneratedFile]) -> HealingSession:
        """Start a session after the first successful generation. Replaces any previous one."""
        if session_id in self._sessions:
            self.end_session(session_id)

        session = HealingSession(
            session_id=session_id,
            original_prompt=prompt,
            files=list(files),
            monitor=ErrorMonitor(
                max_errors=self._config.error_buffer_size,
                max_console_logs=self._config.console_buffer_size,
                console_tail=self._config.console_tail_size,
                session_id=session_id,
            ),
        )
        self._preserver.create_context(session_id, prompt, session.files)
        self._sessions[session_id] = session
        logger.info("healing_session_created", session_id=session_id, files=len(files))
        return session

    def get_session(self, session_id: str) -> HealingSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> None:
        """Drop all session-scoped state. In-flight responses for it are discarded."""
        session = self._sessions.pop(session_id, None)
        self._strategist.clear_history(session_id)
        self._preserver.clear_context(session_id)
        if session is not None:
            session.monitor.clear_errors()
            logger.info("healing_session_ended", session_id=session_id)

    def watch_preview(
        self,
        session: HealingSession,
        preview_url: str = "",
        timeout_ms: int | None = None,
    ) -> LoadWatchdog:
        """Arm a load watchdog for the session's preview. Needs a running loop."""
        watchdog = LoadWatchdog(session.monitor, session.error_context(preview_url=preview_url), timeout_ms)
        watchdog.arm()
        return watchdog

    # ── state listeners ───────────────────────────────────────────────

    def on_state_change(self, callback: StateListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_state(self, session: HealingSession, **changes: Any) -> None:
        session.state = replace(session.state, **changes)
        snapshot = replace(session.state)
        for listener in list(self._listeners):
            try:
                listener(session.session_id, snapshot)
            except Exception as e:
                logger.error(
                    "state_listener_failed",
                    session_id=session.session_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    # ── decisions ─────────────────────────────────────────────────────

    def diagnose(self, session: HealingSession, error: PreviewError) -> DiagnosticReport:
        report = self._classifier.analyze(error, session.files)
        report.suggested_fixes = generate_suggestions(report, error)
        return report

    def decide(self, session: HealingSession, error: PreviewError, report: DiagnosticReport) -> RetryDecision:
        return self._strategist.determine_strategy(error, report, session.session_id)

    def should_auto_heal(self, session: HealingSession, error: PreviewError) -> bool:
        if session.state.is_healing:
            return False
        report = self.diagnose(session, error)
        if not self._config.is_enabled(report.category):
            return False
        return self.decide(session, error, report).should_retry

    # ── healing ───────────────────────────────────────────────────────

    async def heal(self, session: HealingSession, error: PreviewError) -> RegenerationResult:
        """Category gate, then one self-heal attempt."""
        report = self.diagnose(session, error)
        if not self._config.is_enabled(report.category):
            logger.info(
                "self_heal_category_disabled",
                session_id=session.session_id,
                category=report.category.value,
            )
            return RegenerationResult(
                success=False,
                attempt_number=error.attempt_number,
                report=report,
                error=f"Auto-heal is disabled for {report.category.value}",
            )
        return await self.attempt_self_heal(session, error, report)

    async def attempt_self_heal(
        self,
        session: HealingSession,
        error: PreviewError,
        report: DiagnosticReport | None = None,
    ) -> RegenerationResult:
        """Run one self-heal attempt. Never raises for regenerator failures."""
        session_id = session.session_id
        attempt = error.attempt_number

        if session.state.is_healing:
            logger.warning("self_heal_busy", session_id=session_id, attempt=attempt)
            return RegenerationResult(
                success=False,
                attempt_number=attempt,
                error=f"Self-heal already in progress for session {session_id}",
            )

        if report is None:
            report = self.diagnose(session, error)
        elif not report.suggested_fixes:
            report.suggested_fixes = generate_suggestions(report, error)

        decision = self.decide(session, error, report)
        if not decision.should_retry:
            self._metrics.record_refusal()
            logger.warning(
                "self_heal_refused",
                session_id=session_id,
                attempt=attempt,
                reason=decision.reason,
            )
            return RegenerationResult(
                success=False,
                attempt_number=attempt,
                report=report,
                decision=decision,
                error=decision.reason,
            )

        token = session.token
        self._metrics.record_attempt(report.category)
        self._metrics.start_timer(session_id)
        self._set_state(
            session,
            is_healing=True,
            current_attempt=attempt,
            last_error=error,
            message=f"Auto-fixing error (Attempt {attempt}/{decision.max_attempts})... {decision.reason}",
        )
        logger.info(
            "self_heal_started",
            session_id=session_id,
            attempt=attempt,
            category=report.category.value,
            confidence=report.confidence,
            delay_ms=decision.next_delay_ms,
        )

        result: RegenerationResult
        try:
            self._preserver.update_context_with_error(session_id, error, report, session.files)
            if decision.next_delay_ms > 0:
                await self._sleep(decision.next_delay_ms / 1000)
            if self._is_stale(session, token):
                return self._discard(session_id, attempt, report, decision)

            fix_prompt = self.build_fix_prompt(session, error, report, decision)
            request = RegenerationRequest.build(
                error=error,
                report=report,
                original_prompt=session.original_prompt,
                fix_prompt=fix_prompt,
                attempt_number=attempt,
                previous_files=session.files,
            )

            try:
                files = await self._regenerator.regenerate(request)
            except RegenerationError as e:
                if self._is_stale(session, token):
                    return self._discard(session_id, attempt, report, decision)
                self._strategist.record_attempt(session_id, error, report, str(e), success=False)
                logger.warning(
                    "self_heal_failed",
                    session_id=session_id,
                    attempt=attempt,
                    status_code=e.status_code,
                    error=str(e),
                )
                result = RegenerationResult(
                    success=False,
                    attempt_number=attempt,
                    report=report,
                    decision=decision,
                    error=str(e),
                )
            else:
                if self._is_stale(session, token):
                    return self._discard(session_id, attempt, report, decision)
                fix_description = describe_fix(report.suggested_fixes)
                self._strategist.record_attempt(session_id, error, report, fix_description, success=True)
                self._preserver.update_context_with_fix(session_id, files, fix_description)
                session.apply_files(files)
                logger.info(
                    "self_heal_succeeded",
                    session_id=session_id,
                    attempt=attempt,
                    files=len(files),
                    fix=fix_description,
                )
                result = RegenerationResult(
                    success=True,
                    attempt_number=attempt,
                    files=files,
                    report=report,
                    decision=decision,
                    fix_applied=fix_description,
                )
        finally:
            self._set_state(session, is_healing=False, current_attempt=0, message=None)

        self._metrics.record_result(result, self._metrics.stop_timer(session_id))
        return result

    def build_fix_prompt(
        self,
        session: HealingSession,
        error: PreviewError,
        report: DiagnosticReport,
        decision: RetryDecision,
    ) -> str:
        """Context preamble, corrective instructions and an optional strategy-change block."""
        history = self._strategist.get_history(session.session_id)
        if history:
            previous = [f"[{entry.report.category.value}] {entry.error.message}" for entry in history]
            body = self._synthesizer.build_retry(error, report, session.original_prompt, session.files, previous)
        else:
            body = self._synthesizer.build(error, report, session.original_prompt, session.files)

        parts = [self._preserver.generate_context_aware_prompt(session.session_id, error, report), body]
        if decision.change_strategy:
            parts.append(f"STRATEGY CHANGE REQUIRED:\n{decision.change_strategy}")
        return "\n\n".join(part for part in parts if part)

    def _is_stale(self, session: HealingSession, token: int) -> bool:
        current = self._sessions.get(session.session_id)
        return current is not session or current.token != token

    def _discard(
        self,
        session_id: str,
        attempt: int,
        report: DiagnosticReport,
        decision: RetryDecision,
    ) -> RegenerationResult:
        self._metrics.stop_timer(session_id)
        self._metrics.record_stale()
        logger.info("stale_regeneration_discarded", session_id=session_id, attempt=attempt)
        return RegenerationResult(
            success=False,
            attempt_number=attempt,
            report=report,
            decision=decision,
            error="Session ended while regeneration was in flight",
        )

    # ── reporting ─────────────────────────────────────────────────────

    def get_statistics(self, session_id: str) -> RetryStatistics:
        return self._strategist.get_statistics(session_id)

    def get_metrics(self) -> HealingMetrics:
        return self._metrics.get_metrics()
