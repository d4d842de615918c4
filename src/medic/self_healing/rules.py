"""Root-cause rule table.

Rules are evaluated in order against the lowercased error message; the first
match wins. ``unknown`` is a regular outcome, not an error path.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from medic.capture.models import ErrorType, PreviewError, SyntaxKind
from medic.self_healing.models import UNKNOWN_PATTERN, RootCause
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")


@dataclass(frozen=True)
class RootCauseRule:
    """Pattern -> classification entry."""

    pattern: str
    error_type: ErrorType
    applies: Callable[[PreviewError, str], bool]
    explain: Callable[[PreviewError], RootCause]


def quoted_module(message: str) -> str | None:
    """First quoted token of a message, typically a module specifier."""
    match = _QUOTED_RE.search(message or "")
    return match.group(1) if match else None


def _unresolved_module(error: PreviewError) -> str:
    imports = getattr(error, "unresolved_imports", None) or []
    if imports:
        return imports[0]
    return quoted_module(error.message) or "unknown module"


def _has_unresolved(error: PreviewError, msg: str) -> bool:
    return bool(getattr(error, "unresolved_imports", None)) or "cannot resolve" in msg or "could not resolve" in msg


ROOT_CAUSE_RULES: list[RootCauseRule] = [
    RootCauseRule(
        pattern="unclosed-tag",
        error_type=ErrorType.SYNTAX,
        applies=lambda e, msg: "expected" in msg and "closing" in msg,
        explain=lambda e: RootCause(
            primary_cause="Missing closing tag in JSX",
            pattern="unclosed-tag",
            secondary_causes=["Unclosed HTML element", "Mismatched tags"],
            common_solutions=["Add closing tag", "Use self-closing syntax"],
        ),
    ),
    RootCauseRule(
        pattern="unexpected-token",
        error_type=ErrorType.SYNTAX,
        applies=lambda e, msg: "unexpected token" in msg,
        explain=lambda e: RootCause(
            primary_cause="Unexpected syntax token",
            pattern="unexpected-token",
            secondary_causes=["Invalid JSX syntax", "Missing brackets or parentheses"],
            common_solutions=["Check JSX syntax", "Ensure proper nesting"],
        ),
    ),
    RootCauseRule(
        pattern="type-mismatch",
        error_type=ErrorType.SYNTAX,
        applies=lambda e, msg: getattr(e, "syntax_kind", None) is SyntaxKind.TYPESCRIPT and "type" in msg,
        explain=lambda e: RootCause(
            primary_cause="TypeScript type error",
            pattern="type-mismatch",
            secondary_causes=["Wrong annotation", "Incompatible assignment"],
            common_solutions=["Fix type annotations", "Use type inference"],
        ),
    ),
    RootCauseRule(
        pattern="import-error",
        error_type=ErrorType.SYNTAX,
        applies=lambda e, msg: "import" in msg,
        explain=lambda e: RootCause(
            primary_cause="Invalid import statement",
            pattern="import-error",
            secondary_causes=["Wrong import syntax", "Missing quotes"],
            common_solutions=["Fix import syntax", "Check module path"],
        ),
    ),
    RootCauseRule(
        pattern="unresolved-import",
        error_type=ErrorType.BUILD,
        applies=_has_unresolved,
        explain=lambda e: RootCause(
            primary_cause=f"Cannot resolve module: {_unresolved_module(e)}",
            pattern="unresolved-import",
            secondary_causes=["Missing dependency", "Wrong module path", "Typo in import"],
            common_solutions=["Check if module is available", "Fix module path", "Remove invalid import"],
        ),
    ),
    RootCauseRule(
        pattern="transform-error",
        error_type=ErrorType.BUILD,
        applies=lambda e, msg: "transform" in msg,
        explain=lambda e: RootCause(
            primary_cause="Code transformation failed",
            pattern="transform-error",
            secondary_causes=["Invalid TypeScript", "Unsupported syntax"],
            common_solutions=["Simplify code", "Use standard syntax"],
        ),
    ),
    RootCauseRule(
        pattern="null-reference",
        error_type=ErrorType.RUNTIME,
        applies=lambda e, msg: "undefined" in msg or "null" in msg,
        explain=lambda e: RootCause(
            primary_cause="Accessing property of undefined/null",
            pattern="null-reference",
            secondary_causes=["Missing null check", "Uninitialized variable"],
            common_solutions=["Add null check", "Initialize variable", "Use optional chaining"],
        ),
    ),
    RootCauseRule(
        pattern="hooks-error",
        error_type=ErrorType.RUNTIME,
        applies=lambda e, msg: "hook" in msg or bool(getattr(e, "hook_name", None)),
        explain=lambda e: RootCause(
            primary_cause="React hooks error",
            pattern="hooks-error",
            secondary_causes=["Hooks called conditionally", "Hooks order changed"],
            common_solutions=["Fix hooks usage", "Ensure hooks are called unconditionally"],
        ),
    ),
    RootCauseRule(
        pattern="invalid-element",
        error_type=ErrorType.RUNTIME,
        applies=lambda e, msg: "element type" in msg or "invalid" in msg,
        explain=lambda e: RootCause(
            primary_cause="Invalid component or element",
            pattern="invalid-element",
            secondary_causes=["Wrong import", "Component not exported", "Undefined component"],
            common_solutions=["Check component export", "Fix import statement"],
        ),
    ),
    RootCauseRule(
        pattern="network-failure",
        error_type=ErrorType.NETWORK,
        applies=lambda e, msg: True,
        explain=lambda e: RootCause(
            primary_cause=f"Failed to load resource: {getattr(e, 'failed_url', '') or 'unknown URL'}",
            pattern="network-failure",
            secondary_causes=["CDN unavailable", "Wrong URL", "404 error"],
            common_solutions=["Check URL", "Use alternative CDN", "Bundle resource locally"],
        ),
    ),
    RootCauseRule(
        pattern="timeout",
        error_type=ErrorType.TIMEOUT,
        applies=lambda e, msg: True,
        explain=lambda e: RootCause(
            primary_cause=f"Operation timed out during {getattr(getattr(e, 'timeout_phase', None), 'value', 'load')}",
            pattern="timeout",
            secondary_causes=["Too complex code", "Infinite loop", "Heavy computation"],
            common_solutions=["Simplify code", "Remove heavy operations", "Check for infinite loops"],
        ),
    ),
]


def match_root_cause(error: PreviewError, rules: list[RootCauseRule] | None = None) -> RootCause:
    """Run the rule table. Falls back to the ``unknown`` pattern with the raw message."""
    message = (error.message or "").lower()

    for rule in rules if rules is not None else ROOT_CAUSE_RULES:
        if rule.error_type is not error.type:
            continue
        try:
            if rule.applies(error, message):
                return rule.explain(error)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug("root_cause_rule_failed", pattern=rule.pattern, error=str(e))
            continue

    return RootCause(
        primary_cause=error.message or "Unknown error",
        pattern=UNKNOWN_PATTERN,
        common_solutions=["Review error message", "Check console logs"],
    )
