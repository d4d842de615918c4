"""Corrective prompt assembly for the external regenerator.

Stateless and deterministic: the same error, report and files always render the
same text.
"""

from __future__ import annotations

from medic.capture.models import GeneratedFile, PreviewError
from medic.self_healing.models import DiagnosticReport, ErrorCategory
from medic.self_healing.rules import quoted_module

MAX_LISTED_ISSUES = 3
MAX_PREVIOUS_FAILURES = 2

CATEGORY_GUIDANCE: dict[ErrorCategory, list[str]] = {
    ErrorCategory.JSX_ERROR: [
        "Close every JSX tag",
        "Use self-closing tags for elements without children: <Component />",
        "Match every bracket and parenthesis",
        "Wrap JSX expressions in curly braces",
    ],
    ErrorCategory.SYNTAX_ERROR: [
        "Check for missing semicolons, brackets or parentheses",
        "Close every string quote",
        "Keep template literals well formed",
        "Remove unexpected tokens",
    ],
    ErrorCategory.TYPE_ERROR: [
        "Add TypeScript annotations where inference is not enough",
        "Fix mismatched assignments",
        "Prefer specific types over 'any'",
        "Make return types match function signatures",
    ],
    ErrorCategory.BUILD_ERROR: [
        "Use standard ES2015+ syntax",
        "Avoid advanced TypeScript features",
        "Make every import resolvable",
        "Remove bundler-specific syntax",
    ],
    ErrorCategory.NETWORK_ERROR: [
        "Remove dependencies on external CDNs",
        "Avoid fetch() calls to external APIs",
        "Inline every asset",
    ],
    ErrorCategory.TIMEOUT_ERROR: [
        "Move heavy computation out of render",
        "Keep component nesting shallow (3-4 levels)",
        "Remove animations and heavy effects",
    ],
}

RUNTIME_GUIDANCE: dict[str, list[str]] = {
    "null-reference": [
        "Check for null/undefined before accessing properties",
        "Use optional chaining: value?.property",
        "Provide defaults: const items = props.items || []",
    ],
    "hooks-error": [
        "Call hooks only at the top level of components",
        "Never call hooks conditionally or inside loops",
        "Keep hook order identical on every render",
    ],
}

DEFAULT_RUNTIME_GUIDANCE = [
    "Validate props and data before use",
    "Handle empty and error states",
    "Check that components are exported and imported correctly",
    "Look for infinite loops or recursion",
]

GENERIC_GUIDANCE = [
    "Read the error message carefully",
    "Fix the root cause, not the symptom",
    "Keep the code simple",
]


class PromptSynthesizer:
    """Renders a diagnosis into the instruction text sent to the regenerator."""

    def build(
        self,
        error: PreviewError,
        report: DiagnosticReport,
        original_prompt: str,
        generated_files: list[GeneratedFile],
    ) -> str:
        sections = [
            self._header(error, report),
            f"ORIGINAL REQUEST:\n{original_prompt}",
            self._error_details(error, report),
        ]
        if report.code_context:
            sections.append(f"PROBLEMATIC CODE:\n```\n{report.code_context}\n```")
        sections.extend(
            [
                self._required_fixes(report),
                self._constraints(report, generated_files),
                self._guidance(error, report),
                self._closing(),
            ]
        )
        return "\n\n".join(sections)

    def build_retry(
        self,
        error: PreviewError,
        report: DiagnosticReport,
        original_prompt: str,
        generated_files: list[GeneratedFile],
        previous_failures: list[str],
    ) -> str:
        """``build`` plus the last prior failures and an instruction to change approach."""
        prompt = self.build(error, report, original_prompt, generated_files)
        lines = [
            "RETRY CONTEXT:",
            f"This is attempt #{error.attempt_number}. Previous attempts failed:",
        ]
        recent = previous_failures[-MAX_PREVIOUS_FAILURES:]
        lines += [f"Attempt {idx}: {summary}" for idx, summary in enumerate(recent, 1)]
        lines += [
            "",
            "Change your approach. The previous solutions did NOT work.",
            "Use a DIFFERENT implementation strategy to avoid the same error.",
        ]
        return f"{prompt}\n\n" + "\n".join(lines)

    @staticmethod
    def summarize(report: DiagnosticReport) -> str:
        """One-line description of what the corrective prompt asks for."""
        automated = report.automated_fixes
        if not automated:
            files = ", ".join(report.failed_files) or "all files"
            return f"Regenerating {files} to fix {report.category.value}"
        if len(automated) == 1:
            return automated[0].description
        summary = ", ".join(fix.description for fix in automated[:2])
        remaining = len(automated) - 2
        return f"{summary} and {remaining} more" if remaining else summary

    # ── sections ──────────────────────────────────────────────────────

    @staticmethod
    def _header(error: PreviewError, report: DiagnosticReport) -> str:
        if error.attempt_number > 1:
            title = f"RETRY ATTEMPT {error.attempt_number} - PREVIOUS FIX FAILED"
        else:
            title = "AUTO-FIX REQUIRED"
        return (
            f"{title}\n\n"
            f"Error Category: {report.category.value}\n"
            f"Severity: {report.severity.value.upper()}\n"
            f"Confidence: {report.confidence}%"
        )

    @staticmethod
    def _error_details(error: PreviewError, report: DiagnosticReport) -> str:
        lines = [
            "ERROR DETECTED:",
            f"- Type: {report.category.value}",
            f"- Root Cause: {report.root_cause}",
            f"- Failed Files: {', '.join(report.failed_files)}",
        ]
        if error.file_path:
            lines.append(f"- Location: {error.location}")

        if report.specific_issues:
            lines += ["", "Specific Issues:"]
            for idx, issue in enumerate(report.specific_issues[:MAX_LISTED_ISSUES], 1):
                lines.append(f"{idx}. [{issue.severity.value}] {issue.description}")
        return "\n".join(lines)

    @staticmethod
    def _required_fixes(report: DiagnosticReport) -> str:
        automated = report.automated_fixes
        if not automated:
            return (
                "REQUIRED ACTIONS:\n"
                "- Analyze the error and regenerate working code\n"
                "- Follow the constraints below strictly"
            )

        lines = ["REQUIRED FIXES:"]
        for idx, fix in enumerate(automated, 1):
            lines.append(f"{idx}. [{fix.action.value.upper()}] {fix.description}")
            if fix.target:
                lines.append(f"   Target: {fix.target}")
            if fix.example:
                lines.append(f"   Example: {fix.example}")
        return "\n".join(lines)

    @staticmethod
    def _constraints(report: DiagnosticReport, generated_files: list[GeneratedFile]) -> str:
        lines = ["CONSTRAINTS:"]
        if report.retained_files:
            lines.append(f"- RETAIN these working files verbatim: {', '.join(report.retained_files)}")
        if report.failed_files:
            lines.append(f"- REGENERATE only these failed files: {', '.join(report.failed_files)}")
        else:
            lines.append("- REGENERATE all files with fixes applied")
        if generated_files:
            lines.append(f"- KEEP the project at {len(generated_files)} files unless a fix requires a new one")
        lines += [
            "- MAINTAIN the functionality of the original request",
            "- PRESERVE all working features",
            "- FIX only the issues identified above",
        ]
        return "\n".join(lines)

    @staticmethod
    def _guidance(error: PreviewError, report: DiagnosticReport) -> str:
        category = report.category
        if category in (ErrorCategory.IMPORT_ERROR, ErrorCategory.DEPENDENCY_ERROR):
            imports = getattr(error, "unresolved_imports", None) or []
            module = imports[0] if imports else quoted_module(error.message) or "unavailable module"
            items = [
                f'Remove the unavailable import "{module}"',
                "Use only React and Tailwind CSS",
                "Build the functionality instead of importing a library",
                "Keep only imports from react and react-dom",
            ]
        elif category is ErrorCategory.RUNTIME_ERROR:
            items = RUNTIME_GUIDANCE.get(report.root_cause_pattern, DEFAULT_RUNTIME_GUIDANCE)
        else:
            items = CATEGORY_GUIDANCE.get(category, GENERIC_GUIDANCE)

        return "CATEGORY GUIDANCE:\n" + "\n".join(f"[ ] {item}" for item in items)

    @staticmethod
    def _closing() -> str:
        return (
            "HARD CONSTRAINTS:\n"
            "1. Output COMPLETE, EXECUTABLE code only\n"
            '2. NO placeholders such as "// Implementation here"\n'
            "3. NO explanations or commentary\n"
            "4. INCLUDE every import, export and piece of logic the code needs"
        )
