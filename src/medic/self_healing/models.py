"""Domain models for the self-healing module."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from medic.capture.models import GeneratedFile, PreviewError
from medic.shared.domain.base_model import BaseDomainModel

UNKNOWN_PATTERN = "unknown"


class ErrorCategory(Enum):
    """Diagnostic classification of a preview failure."""

    JSX_ERROR = "JSX_ERROR"
    SYNTAX_ERROR = "SYNTAX_ERROR"
    IMPORT_ERROR = "IMPORT_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
    BUILD_ERROR = "BUILD_ERROR"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    TYPE_ERROR = "TYPE_ERROR"

    @classmethod
    def parse(cls, value: str) -> ErrorCategory:
        """Accept ``JSX_ERROR``, ``jsx_error`` or the short ``JSX`` form."""
        key = value.strip().upper()
        if not key.endswith("_ERROR"):
            key += "_ERROR"
        return cls(key)


class Severity(Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"

    @property
    def score(self) -> int:
        return {"critical": 3, "major": 2, "minor": 1}[self.value]


class FixAction(Enum):
    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    REPLACE = "replace"


@dataclass
class FixSuggestion(BaseDomainModel):
    """One candidate remediation.

    ``automated`` suggestions become explicit instructions in the corrective
    prompt; the rest are surfaced for human visibility only.
    """

    action: FixAction
    description: str
    target: str | None = None
    example: str | None = None
    automated: bool = False


@dataclass
class Issue(BaseDomainModel):
    type: str
    severity: Severity
    description: str
    location: str | None = None


@dataclass
class RootCause:
    """Outcome of the root-cause rule table."""

    primary_cause: str
    pattern: str = UNKNOWN_PATTERN
    secondary_causes: list[str] = field(default_factory=list)
    common_solutions: list[str] = field(default_factory=list)

    @property
    def is_known(self) -> bool:
        return self.pattern != UNKNOWN_PATTERN


@dataclass
class CodeContext(BaseDomainModel):
    file: str
    start_line: int
    end_line: int
    content: str
    highlight_line: int | None = None


@dataclass
class DiagnosticReport(BaseDomainModel):
    """Structured diagnosis of a single PreviewError.

    ``failed_files`` and ``retained_files`` are disjoint and together cover
    the whole generated file set.
    """

    error_id: str
    summary: str
    category: ErrorCategory
    severity: Severity
    root_cause: str
    root_cause_pattern: str
    confidence: int
    failed_files: list[str] = field(default_factory=list)
    retained_files: list[str] = field(default_factory=list)
    affected_code: str = "Unknown location"
    code_context: str = ""
    specific_issues: list[Issue] = field(default_factory=list)
    suggested_fixes: list[FixSuggestion] = field(default_factory=list)
    secondary_causes: list[str] = field(default_factory=list)
    common_solutions: list[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    @property
    def automated_fixes(self) -> list[FixSuggestion]:
        return [f for f in self.suggested_fixes if f.automated]


@dataclass
class RetryDecision(BaseDomainModel):
    should_retry: bool
    max_attempts: int
    next_delay_ms: int
    reason: str
    change_strategy: str | None = None


@dataclass
class RetryHistoryEntry:
    attempt_number: int
    error: PreviewError
    report: DiagnosticReport
    fix_applied: str
    success: bool
    timestamp: float = field(default_factory=time.time)


@dataclass
class RegenerationResult:
    """Outcome of one self-heal attempt. Never raised, always returned."""

    success: bool
    attempt_number: int
    files: list[GeneratedFile] = field(default_factory=list)
    report: DiagnosticReport | None = None
    decision: RetryDecision | None = None
    fix_applied: str | None = None
    error: str | None = None


@dataclass
class HealState:
    is_healing: bool = False
    current_attempt: int = 0
    last_error: PreviewError | None = None
    message: str | None = None
