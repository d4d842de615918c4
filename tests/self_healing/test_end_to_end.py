"""Capture -> diagnose -> decide -> regenerate over three failing previews of one file."""

from __future__ import annotations

from dataclasses import replace

import pytest

from medic.capture.models import ErrorType, SyntaxKind
from medic.self_healing.models import ErrorCategory, Severity
from medic.self_healing.orchestrator import SelfHealOrchestrator
from medic.self_healing.retry import REASON_MAX_ATTEMPTS, REASON_REPEATING, REASON_STANDARD

PROMPT = "Build a landing page. It must show a card with a header."
JSX_MESSAGE = "Expected corresponding JSX closing tag for <div> in src/App.tsx:{line}:6"


@pytest.mark.asyncio
async def test_repeating_jsx_error_until_attempts_run_out(app_file, regenerator, sleeper):
    # Regenerator keeps answering with a file that still fails to parse.
    regenerator.files = [replace(app_file)]
    orchestrator = SelfHealOrchestrator(regenerator, sleep=sleeper)
    session = orchestrator.create_session("e2e", PROMPT, [app_file])
    captured = []
    session.monitor.on_error(captured.append)
    context = session.error_context(preview_url="http://localhost:5173/preview")

    # Attempt 1: JSX error at line 7
    first = session.monitor.capture_bundler_failure(JSX_MESSAGE.format(line=7), app_file.content, context)
    assert first.type is ErrorType.SYNTAX
    assert first.syntax_kind is SyntaxKind.JSX
    assert (first.file_path, first.line_number, first.attempt_number) == ("src/App.tsx", 7, 1)

    report = orchestrator.diagnose(session, first)
    assert report.category is ErrorCategory.JSX_ERROR
    assert report.severity is Severity.CRITICAL
    assert report.confidence >= 85
    assert report.failed_files == ["src/App.tsx"]

    decision = orchestrator.decide(session, first, report)
    assert decision.should_retry
    assert decision.next_delay_ms == 2000
    assert decision.reason == REASON_STANDARD

    result = await orchestrator.attempt_self_heal(session, first, report)
    assert result.success

    # Attempt 2: same signature, different line
    second = session.monitor.capture_bundler_failure(JSX_MESSAGE.format(line=9), app_file.content, context)
    assert second.attempt_number == 2
    assert second.signature == first.signature

    result = await orchestrator.attempt_self_heal(session, second)
    assert result.success
    assert result.decision.reason == REASON_REPEATING
    assert result.decision.should_retry
    assert result.decision.change_strategy is not None

    # Attempt 3: attempts exhausted
    third = session.monitor.capture_bundler_failure(JSX_MESSAGE.format(line=7), app_file.content, context)
    assert third.attempt_number == 3

    result = await orchestrator.attempt_self_heal(session, third)
    assert not result.success
    assert not result.decision.should_retry
    assert result.error == REASON_MAX_ATTEMPTS

    assert captured == session.monitor.get_errors() == [first, second, third]
    assert len(regenerator.requests) == 2
    assert sleeper.calls == [2.0, 4.0]

    metrics = orchestrator.get_metrics()
    assert (metrics.total_attempts, metrics.total_fixed, metrics.retries_refused) == (2, 2, 1)
    assert orchestrator.get_statistics("e2e").total_attempts == 2
