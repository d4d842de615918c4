"""Error diagnosis: category, severity, root cause, file attribution and confidence."""

from __future__ import annotations

import re

from medic.capture.models import (
    BuildPreviewError,
    ErrorType,
    GeneratedFile,
    PreviewError,
    SyntaxKind,
    SyntaxPreviewError,
)
from medic.self_healing.models import (
    CodeContext,
    DiagnosticReport,
    ErrorCategory,
    Issue,
    RootCause,
    Severity,
)
from medic.self_healing.rules import match_root_cause

CONTEXT_LINES = 5
FAULT_MARKER = "→"

SEVERITY_BY_TYPE = {
    ErrorType.SYNTAX: Severity.CRITICAL,
    ErrorType.BUILD: Severity.CRITICAL,
    ErrorType.RUNTIME: Severity.MAJOR,
    ErrorType.NETWORK: Severity.MINOR,
    ErrorType.TIMEOUT: Severity.MINOR,
}

SYNTAX_CATEGORIES = {
    SyntaxKind.JSX: ErrorCategory.JSX_ERROR,
    SyntaxKind.IMPORT: ErrorCategory.IMPORT_ERROR,
    SyntaxKind.TYPESCRIPT: ErrorCategory.TYPE_ERROR,
}

# Confidence weights
BASE_CONFIDENCE = 50
LINE_BONUS = 20
FILE_BONUS = 10
PATTERN_BONUS = 15
STACK_BONUS = 5


class ErrorClassifier:
    """Builds a DiagnosticReport from a captured error and the current file set.

    ``analyze`` is pure: it never mutates the error and never raises on
    unrecognised input. Unattributable errors lower confidence and widen
    ``failed_files`` instead.
    """

    def __init__(self, context_lines: int = CONTEXT_LINES) -> None:
        self._context_lines = context_lines

    def analyze(self, error: PreviewError, generated_files: list[GeneratedFile]) -> DiagnosticReport:
        root_cause = match_root_cause(error)
        severity = self.determine_severity(error)
        failed, retained = self.partition_files(error, generated_files)

        return DiagnosticReport(
            error_id=error.id,
            summary=self._summarize(error),
            category=self.categorize(error),
            severity=severity,
            root_cause=root_cause.primary_cause,
            root_cause_pattern=root_cause.pattern,
            confidence=self.calculate_confidence(error, root_cause),
            failed_files=failed,
            retained_files=retained,
            affected_code=self._describe_location(error),
            code_context=self.code_context(error, generated_files).content,
            specific_issues=self._extract_issues(error, severity),
            secondary_causes=list(root_cause.secondary_causes),
            common_solutions=list(root_cause.common_solutions),
        )

    # ── classification ────────────────────────────────────────────────

    @staticmethod
    def categorize(error: PreviewError) -> ErrorCategory:
        if isinstance(error, SyntaxPreviewError):
            return SYNTAX_CATEGORIES.get(error.syntax_kind, ErrorCategory.SYNTAX_ERROR)
        if isinstance(error, BuildPreviewError):
            return ErrorCategory.DEPENDENCY_ERROR if error.unresolved_imports else ErrorCategory.BUILD_ERROR
        if error.type is ErrorType.NETWORK:
            return ErrorCategory.NETWORK_ERROR
        if error.type is ErrorType.TIMEOUT:
            return ErrorCategory.TIMEOUT_ERROR
        return ErrorCategory.RUNTIME_ERROR

    @staticmethod
    def determine_severity(error: PreviewError) -> Severity:
        return SEVERITY_BY_TYPE.get(error.type, Severity.MAJOR)

    @staticmethod
    def calculate_confidence(error: PreviewError, root_cause: RootCause) -> int:
        confidence = BASE_CONFIDENCE
        if error.line_number:
            confidence += LINE_BONUS
        if error.file_path:
            confidence += FILE_BONUS
        if root_cause.is_known:
            confidence += PATTERN_BONUS
        if error.stack:
            confidence += STACK_BONUS
        return min(100, confidence)

    # ── file attribution ──────────────────────────────────────────────

    @staticmethod
    def find_file(error: PreviewError, generated_files: list[GeneratedFile]) -> GeneratedFile | None:
        """Resolve ``error.file_path`` against the file set (exact, then suffix match)."""
        if not error.file_path:
            return None
        target = _relative(error.file_path)
        for f in generated_files:
            if f.path == error.file_path:
                return f
        for f in generated_files:
            path = _relative(f.path)
            if path == target or path.endswith("/" + target) or target.endswith("/" + path):
                return f
        return None

    def partition_files(
        self,
        error: PreviewError,
        generated_files: list[GeneratedFile],
    ) -> tuple[list[str], list[str]]:
        """Split paths into (failed, retained).

        If nothing can be attributed, every file is failed.
        """
        failed: list[str] = []
        seed = self.find_file(error, generated_files)
        if seed is not None:
            failed.append(seed.path)

        haystack = f"{error.message or ''}\n{error.stack or ''}"
        for f in generated_files:
            if f.path in failed:
                continue
            if _mentions(haystack, f.basename):
                failed.append(f.path)

        if not failed:
            return [f.path for f in generated_files], []

        retained = [f.path for f in generated_files if f.path not in failed]
        return failed, retained

    # ── code context ──────────────────────────────────────────────────

    def code_context(self, error: PreviewError, generated_files: list[GeneratedFile]) -> CodeContext:
        """±N line window around the fault, with a gutter and a marker on the fault line."""
        source = self.find_file(error, generated_files)
        fallback = CodeContext(
            file=error.file_path or "unknown",
            start_line=1,
            end_line=1,
            content=error.code or "Code not available",
        )
        if source is None or not error.line_number:
            return fallback

        lines = source.content.split("\n")
        fault = error.line_number - 1
        if fault < 0 or fault >= len(lines):
            return fallback

        start = max(0, fault - self._context_lines)
        end = min(len(lines) - 1, fault + self._context_lines)
        numbered = []
        for idx in range(start, end + 1):
            line_no = idx + 1
            marker = FAULT_MARKER if line_no == error.line_number else " "
            numbered.append(f"{marker} {line_no:>4}: {lines[idx]}")

        return CodeContext(
            file=source.path,
            start_line=start + 1,
            end_line=end + 1,
            content="\n".join(numbered),
            highlight_line=error.line_number,
        )

    # ── descriptions ──────────────────────────────────────────────────

    @staticmethod
    def _summarize(error: PreviewError) -> str:
        file_name = error.file_path.rsplit("/", 1)[-1] if error.file_path else "generated code"
        if error.type is ErrorType.SYNTAX:
            at_line = f" at line {error.line_number}" if error.line_number else ""
            return f"Syntax error in {file_name}{at_line}"
        if error.type is ErrorType.BUILD:
            return f"Build failed in {file_name}"
        if error.type is ErrorType.RUNTIME:
            return f"Runtime error in {error.component_name or file_name}"
        if error.type is ErrorType.NETWORK:
            return "Failed to load external resource"
        return "Preview timed out during loading"

    @staticmethod
    def _describe_location(error: PreviewError) -> str:
        if not error.file_path:
            return "Unknown location"
        if error.line_number and error.column_number:
            return f"line {error.line_number}:{error.column_number} in {error.file_path}"
        if error.line_number:
            return f"line {error.line_number} in {error.file_path}"
        return error.file_path

    @staticmethod
    def _extract_issues(error: PreviewError, severity: Severity) -> list[Issue]:
        issues = [
            Issue(
                type=error.type.value,
                severity=severity,
                description=error.message,
                location=error.location,
            )
        ]

        console_problems = [
            log for log in error.console_logs if log.startswith("[error]") or log.startswith("[warn]")
        ]
        for log in console_problems[-3:]:
            issues.append(
                Issue(
                    type="console-error",
                    severity=Severity.MINOR,
                    description=re.sub(r"^\[(error|warn)\]\s*", "", log),
                )
            )

        if isinstance(error, SyntaxPreviewError) and error.expected_token:
            issues.append(
                Issue(
                    type="syntax-mismatch",
                    severity=Severity.CRITICAL,
                    description=f'Expected "{error.expected_token}" but got "{error.actual_token}"',
                    location=error.location,
                )
            )

        if isinstance(error, BuildPreviewError):
            for module in error.unresolved_imports:
                issues.append(
                    Issue(
                        type="unresolved-import",
                        severity=Severity.CRITICAL,
                        description=f'Cannot resolve module: "{module}"',
                    )
                )

        return issues


def _mentions(text: str, basename: str) -> bool:
    if not basename:
        return False
    return re.search(rf"(?<![\w-]){re.escape(basename)}(?!\w)", text) is not None


def _relative(path: str) -> str:
    return path[2:] if path.startswith("./") else path
