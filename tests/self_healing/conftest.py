"""Shared fixtures for self_healing tests."""

from __future__ import annotations

import asyncio

import pytest

from medic.capture.models import (
    BuildPhase,
    BuildPreviewError,
    GeneratedFile,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
)
from medic.self_healing.models import DiagnosticReport, ErrorCategory, Severity
from medic.self_healing.orchestrator import SelfHealOrchestrator
from medic.self_healing.regenerator import IRegenerator, RegenerationRequest


@pytest.fixture
def jsx_error():
    return SyntaxPreviewError(
        message="Expected corresponding JSX closing tag for <div>",
        code='<div className="card">',
        line_number=7,
        column_number=6,
        file_path="src/App.tsx",
        syntax_kind=SyntaxKind.JSX,
    )


@pytest.fixture
def dependency_error():
    return BuildPreviewError(
        message="Could not resolve 'react-charts-pro'",
        build_phase=BuildPhase.RESOLUTION,
        unresolved_imports=["react-charts-pro"],
    )


@pytest.fixture
def null_reference_error():
    return RuntimePreviewError(
        message="Cannot read property 'map' of undefined",
        stack="TypeError: Cannot read property 'map' of undefined\n    at Header (src/components/Header.tsx:5:12)",
        component_name="Header",
    )


def make_report(
    category: ErrorCategory = ErrorCategory.JSX_ERROR,
    severity: Severity = Severity.CRITICAL,
    confidence: int = 95,
    pattern: str = "unclosed-tag",
    **overrides,
) -> DiagnosticReport:
    fields = dict(
        error_id="err-1",
        summary="Syntax error in App.tsx",
        category=category,
        severity=severity,
        root_cause="Missing closing tag in JSX",
        root_cause_pattern=pattern,
        confidence=confidence,
    )
    fields.update(overrides)
    return DiagnosticReport(**fields)


@pytest.fixture
def report_factory():
    return make_report


class FakeRegenerator(IRegenerator):
    """Returns canned files or raises; can be held open with ``release``."""

    def __init__(self, files=None, error: Exception | None = None) -> None:
        self.files = files or []
        self.error = error
        self.requests: list[RegenerationRequest] = []
        self.release: asyncio.Event | None = None
        self.entered: asyncio.Event | None = None

    async def regenerate(self, request: RegenerationRequest):
        self.requests.append(request)
        if self.entered is not None:
            self.entered.set()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return list(self.files)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fixed_app_file():
    return GeneratedFile(path="src/App.tsx", content="export default function App() { return <main />; }")


@pytest.fixture
def regenerator(fixed_app_file):
    return FakeRegenerator(files=[fixed_app_file])


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def orchestrator(regenerator, sleeper):
    return SelfHealOrchestrator(regenerator, sleep=sleeper)


@pytest.fixture
def session(orchestrator, generated_files):
    return orchestrator.create_session("session-1", "Build a landing page with a header.", generated_files)
