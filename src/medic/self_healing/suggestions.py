"""Fix catalog: maps a diagnosis to candidate remediations.

``generate_suggestions`` is a pure lookup keyed by category and root-cause
pattern, and always returns at least one suggestion.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from medic.capture.models import PreviewError
from medic.self_healing.models import DiagnosticReport, ErrorCategory, FixAction, FixSuggestion
from medic.self_healing.rules import quoted_module

# Known replacements for libraries the preview sandbox cannot load.
IMPORT_ALTERNATIVES: dict[str, list[str]] = {
    "react-icons": ["lucide-react"],
    "@heroicons/react": ["lucide-react"],
    "styled-components": [],
    "@emotion/react": [],
    "lodash": [],
    "moment": ["date-fns"],
    "axios": ["fetch"],
}

_TAG_RE = re.compile(r"<(\w+)")

SuggestionRule = Callable[[PreviewError, DiagnosticReport], list[FixSuggestion]]


def _at_line(error: PreviewError, prefix: str = "Code at line") -> str:
    return f"{prefix} {error.line_number}" if error.line_number else prefix.replace(" at line", "")


def _jsx(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    suggestions = []
    lower = error.message.lower()

    if report.root_cause_pattern == "unclosed-tag":
        tag_match = _TAG_RE.search(error.message)
        tag = tag_match.group(1) if tag_match else "element"
        suggestions.append(
            FixSuggestion(
                action=FixAction.ADD,
                description=f"Add closing tag for <{tag}>",
                target=_at_line(error, "JSX closing tag at line"),
                example=f"<{tag}>content</{tag}>  // or  <{tag} />",
                automated=True,
            )
        )

    if "fragment" in lower or "adjacent jsx" in lower:
        suggestions.append(
            FixSuggestion(
                action=FixAction.ADD,
                description="Wrap multiple elements in a React Fragment",
                target="JSX elements",
                example="<>\n  <div>Element 1</div>\n  <div>Element 2</div>\n</>",
                automated=True,
            )
        )

    if "classname" in lower:
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Ensure className values are strings",
                target="className attribute",
                example='className="my-class"',
                automated=True,
            )
        )

    return suggestions


def _syntax(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    suggestions = []
    lower = error.message.lower()

    if "unexpected token" in lower:
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Fix unexpected syntax token",
                target=_at_line(error),
                example="Check for missing brackets, parentheses, or quotes",
                automated=False,
            )
        )

    if "semicolon" in lower:
        suggestions.append(
            FixSuggestion(
                action=FixAction.ADD,
                description="Add missing semicolon",
                target=_at_line(error, "Line"),
                automated=True,
            )
        )

    return suggestions


def _imports(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    suggestions = []
    imports = getattr(error, "unresolved_imports", None) or []
    module = imports[0] if imports else quoted_module(error.message) or "module"

    if report.root_cause_pattern == "unresolved-import":
        suggestions.append(
            FixSuggestion(
                action=FixAction.REMOVE,
                description=f'Remove unavailable import "{module}"',
                target="Import statement",
                example=f"// Remove: import {{ Component }} from '{module}'",
                automated=True,
            )
        )
        alternatives = import_alternatives(module)
        if alternatives:
            suggestions.append(
                FixSuggestion(
                    action=FixAction.REPLACE,
                    description=f'Replace "{module}" with available alternative',
                    target="Import statement",
                    example=f"import {{ Component }} from '{alternatives[0]}'",
                    automated=True,
                )
            )

    if report.root_cause_pattern == "import-error":
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Fix import statement syntax",
                target="Import statement",
                example="import { Component } from 'module'",
                automated=True,
            )
        )

    if "default export" in error.message.lower():
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Change to named import or add default export",
                target="Import statement",
                example="import Component from 'module'  // or  import { Component } from 'module'",
                automated=True,
            )
        )

    return suggestions


def _build(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    suggestions = []
    if "transform" in error.message.lower():
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Simplify code to use standard syntax",
                target="Complex TypeScript features",
                example="Avoid advanced TypeScript features that may not transform correctly",
                automated=False,
            )
        )
    suggestions.append(
        FixSuggestion(
            action=FixAction.REPLACE,
            description="Regenerate the problematic file with simpler implementation",
            target=", ".join(report.failed_files) or None,
            automated=True,
        )
    )
    return suggestions


def _runtime(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    suggestions = []
    pattern = report.root_cause_pattern

    if pattern == "null-reference":
        suggestions.append(
            FixSuggestion(
                action=FixAction.ADD,
                description="Add null/undefined check before accessing property",
                target=_at_line(error),
                example="if (variable) { variable.property }  // or  variable?.property",
                automated=True,
            )
        )
    elif pattern == "hooks-error":
        hook = getattr(error, "hook_name", None)
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Fix React hooks usage",
                target=hook or "Hook calls",
                example="Ensure hooks are called at top level and not conditionally",
                automated=False,
            )
        )
    elif pattern == "invalid-element":
        component = error.component_name or "Component"
        suggestions.append(
            FixSuggestion(
                action=FixAction.MODIFY,
                description="Fix component import/export",
                target=component,
                example=f"export default function {component}() {{ ... }}",
                automated=True,
            )
        )

    if ".map" in error.message.lower() or "'map'" in error.message.lower():
        suggestions.append(
            FixSuggestion(
                action=FixAction.ADD,
                description="Initialize array before using .map()",
                target="Array variable",
                example="const items = data || [];  // Then: items.map(...)",
                automated=True,
            )
        )

    return suggestions


def _network(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    return [
        FixSuggestion(
            action=FixAction.REMOVE,
            description="Remove dependency on external resource",
            target=getattr(error, "failed_url", None) or "CDN link or fetch call",
            example="Use bundled libraries instead of CDN",
            automated=True,
        ),
        FixSuggestion(
            action=FixAction.REPLACE,
            description="Use alternative CDN or bundle resource",
            target="Resource URL",
            automated=False,
        ),
    ]


def _timeout(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    return [
        FixSuggestion(
            action=FixAction.MODIFY,
            description="Simplify component logic to reduce complexity",
            target=", ".join(report.failed_files) or None,
            example="Remove heavy computations, reduce component nesting",
            automated=True,
        ),
        FixSuggestion(
            action=FixAction.REMOVE,
            description="Remove animations or complex effects",
            target="Framer Motion or heavy libraries",
            automated=True,
        ),
    ]


def _types(error: PreviewError, report: DiagnosticReport) -> list[FixSuggestion]:
    return [
        FixSuggestion(
            action=FixAction.ADD,
            description="Add proper TypeScript type definitions",
            target=_at_line(error),
            example='const value: string = "hello"  // or use type inference',
            automated=True,
        ),
        FixSuggestion(
            action=FixAction.MODIFY,
            description="Use type assertion if needed",
            target="Type mismatch",
            example="value as SomeType",
            automated=False,
        ),
    ]


CATEGORY_RULES: dict[ErrorCategory, SuggestionRule] = {
    ErrorCategory.JSX_ERROR: _jsx,
    ErrorCategory.SYNTAX_ERROR: _syntax,
    ErrorCategory.IMPORT_ERROR: _imports,
    ErrorCategory.DEPENDENCY_ERROR: _imports,
    ErrorCategory.BUILD_ERROR: _build,
    ErrorCategory.RUNTIME_ERROR: _runtime,
    ErrorCategory.NETWORK_ERROR: _network,
    ErrorCategory.TIMEOUT_ERROR: _timeout,
    ErrorCategory.TYPE_ERROR: _types,
}


def general_suggestions(report: DiagnosticReport) -> list[FixSuggestion]:
    """Fallback pair used when no category-specific rule matches."""
    return [
        FixSuggestion(
            action=FixAction.REPLACE,
            description="Regenerate the entire application with corrected prompt",
            target="All files",
            automated=True,
        ),
        FixSuggestion(
            action=FixAction.MODIFY,
            description="Review and manually fix the error",
            target=", ".join(report.failed_files) or None,
            automated=False,
        ),
    ]


def import_alternatives(module: str) -> list[str]:
    for key, alternatives in IMPORT_ALTERNATIVES.items():
        if key in module:
            return list(alternatives)
    return []


def generate_suggestions(report: DiagnosticReport, error: PreviewError) -> list[FixSuggestion]:
    """Candidate fixes for a diagnosis. Same inputs always give the same output."""
    rule = CATEGORY_RULES.get(report.category)
    suggestions = rule(error, report) if rule else []
    return suggestions or general_suggestions(report)


def create_fix_description(suggestions: list[FixSuggestion]) -> str:
    """Human-readable list split into automated and manual fixes."""
    if not suggestions:
        return "No specific fixes available. Please review the error and regenerate."

    automated = [s for s in suggestions if s.automated]
    manual = [s for s in suggestions if not s.automated]
    blocks = []

    if automated:
        lines = ["Automated fixes available:"]
        lines += [f"{idx}. {s.description}" for idx, s in enumerate(automated, 1)]
        blocks.append("\n".join(lines))

    if manual:
        lines = ["Manual fixes required:"]
        lines += [f"{idx}. {s.description}" for idx, s in enumerate(manual, 1)]
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)
