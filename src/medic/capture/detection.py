"""Keyword and regex heuristics for raw failure text.

Used by the preview/bundler collaborator when the origin of a failure is
ambiguous, before it calls one of the typed capture constructors. Rules are
ordered tables: the first matching rule wins and runtime is the fallback.
"""

from __future__ import annotations

import re

from medic.capture.models import BuildPhase, ErrorType, SyntaxKind

# Ordered: syntax beats build beats network beats timeout.
ERROR_TYPE_RULES: list[tuple[ErrorType, tuple[str, ...]]] = [
    (ErrorType.SYNTAX, ("unexpected token", "expected", "syntax error", "parsing error")),
    (ErrorType.BUILD, ("cannot find module", "failed to resolve", "could not resolve", "build failed", "bundling")),
    (ErrorType.NETWORK, ("404", "failed to load", "network error", "fetch failed")),
    (ErrorType.TIMEOUT, ("timeout", "timed out")),
]

SYNTAX_KIND_RULES: list[tuple[SyntaxKind, tuple[str, ...]]] = [
    (SyntaxKind.JSX, ("JSX", "tag")),
    (SyntaxKind.TYPESCRIPT, ("type", "TypeScript")),
    (SyntaxKind.IMPORT, ("import", "export")),
]

BUILD_PHASE_RULES: list[tuple[BuildPhase, str]] = [
    (BuildPhase.RESOLUTION, "resolve"),
    (BuildPhase.TRANSFORMATION, "transform"),
]

_LINE_COLUMN_RE = re.compile(r"(?:line\s+|:)(\d+)(?::(\d+))?", re.IGNORECASE)
_FILE_RE = re.compile(r"(?:in|at)\s+([^\s]+\.(?:tsx|ts|jsx|js))", re.IGNORECASE)
_UNRESOLVED_RE = re.compile(r"Could not resolve [\"']([^\"']+)[\"']")
_EXPECTED_RE = re.compile(r"expected\s+[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE)
_ACTUAL_RE = re.compile(r"but\s+(?:got|found)\s+[\"']?([^\"'\s]+)[\"']?", re.IGNORECASE)
_COMPONENT_RE = re.compile(r"at\s+(\w+)\s+\(")


def detect_error_type(message: str, stack: str | None = None) -> ErrorType:
    """Guess the failure class from free text. Never raises; defaults to runtime."""
    lower = (message or "").lower()
    for error_type, keywords in ERROR_TYPE_RULES:
        if any(keyword in lower for keyword in keywords):
            return error_type
    return ErrorType.RUNTIME


def parse_error_message(message: str) -> dict[str, int | str]:
    """Extract ``line_number``, ``column_number`` and ``file_path`` where present."""
    result: dict[str, int | str] = {}
    if not message:
        return result

    line_match = _LINE_COLUMN_RE.search(message)
    if line_match:
        result["line_number"] = int(line_match.group(1))
        if line_match.group(2):
            result["column_number"] = int(line_match.group(2))

    file_match = _FILE_RE.search(message)
    if file_match:
        result["file_path"] = file_match.group(1)

    return result


def extract_unresolved_imports(message: str) -> list[str]:
    """Module specifiers named in "Could not resolve 'x'" bundler messages, in order."""
    modules: list[str] = []
    for match in _UNRESOLVED_RE.finditer(message or ""):
        if match.group(1) not in modules:
            modules.append(match.group(1))
    return modules


def infer_build_phase(message: str) -> BuildPhase:
    for phase, keyword in BUILD_PHASE_RULES:
        if keyword in (message or ""):
            return phase
    return BuildPhase.BUNDLING


def infer_syntax_kind(message: str) -> SyntaxKind:
    for kind, keywords in SYNTAX_KIND_RULES:
        if any(keyword in (message or "") for keyword in keywords):
            return kind
    return SyntaxKind.OTHER


def extract_tokens(message: str) -> tuple[str | None, str | None]:
    """Return the (expected, actual) tokens of a parser message."""
    expected = _EXPECTED_RE.search(message or "")
    actual = _ACTUAL_RE.search(message or "")
    return (
        expected.group(1) if expected else None,
        actual.group(1) if actual else None,
    )


def extract_component_name(stack: str | None) -> str | None:
    """First ``at Name (`` frame of a JS stack trace."""
    if not stack:
        return None
    match = _COMPONENT_RE.search(stack)
    return match.group(1) if match else None
