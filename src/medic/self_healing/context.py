"""Session-scoped preservation of intent and known-good files across retries."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field

from medic.capture.models import GeneratedFile, PreviewError
from medic.self_healing.models import DiagnosticReport
from medic.shared.domain.exceptions import ContextNotFoundError
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

INTENT_MAX_CHARS = 100
MAX_REQUIREMENTS = 5

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_REQUIREMENT_PATTERNS = [
    re.compile(r"\b(?:must|should|need to|has to|required to)\s+([^.,!?]+)", re.IGNORECASE),
    re.compile(r"\b(?:with|include|feature|functionality|capability)\s+([^.,!?]+)", re.IGNORECASE),
    re.compile(r"\b(?:allow|enable|support)\s+([^.,!?]+)", re.IGNORECASE),
]


@dataclass
class PreservedFile:
    path: str
    content: str
    reason: str = ""
    errors: list[str] = field(default_factory=list)


@dataclass
class PreservationContext:
    """What a session knows about the user's intent and the state of each file.

    ``user_intent``, ``requirements`` and ``design_decisions`` are fixed at
    creation; only the two file buckets change afterwards.
    """

    session_id: str
    original_prompt: str
    user_intent: str
    requirements: list[str]
    design_decisions: list[str]
    working_files: dict[str, PreservedFile] = field(default_factory=dict)
    failed_files: dict[str, PreservedFile] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    last_updated: float = field(default_factory=time.time)


def extract_intent(prompt: str) -> str:
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(prompt or "") if s.strip()]
    intent = ". ".join(sentences[:2])
    if len(intent) > INTENT_MAX_CHARS:
        return intent[:INTENT_MAX_CHARS] + "..."
    return intent


def extract_requirements(prompt: str) -> list[str]:
    requirements: list[str] = []
    for pattern in _REQUIREMENT_PATTERNS:
        for match in pattern.finditer(prompt or ""):
            clause = match.group(1).strip()
            if clause and clause not in requirements:
                requirements.append(clause)
    return requirements[:MAX_REQUIREMENTS]


def extract_design_decisions(files: list[GeneratedFile]) -> list[str]:
    decisions = []
    paths = [f.path for f in files]

    if any("components/" in p for p in paths):
        decisions.append("Component-based architecture")
    if any("utils/" in p or "lib/" in p for p in paths):
        decisions.append("Utility functions separated into dedicated files")
    if any("types/" in p for p in paths):
        decisions.append("TypeScript type definitions")
    if any(p.endswith(".css") for p in paths):
        decisions.append("Separate CSS files for styling")

    content = "\n".join(f.content for f in files)
    if "useState" in content or "useEffect" in content:
        decisions.append("React hooks for state management")
    if "tailwind" in content.lower():
        decisions.append("Tailwind CSS for styling")
    if "interface " in content or "type " in content:
        decisions.append("TypeScript type safety")

    return decisions


class ContextPreserver:
    """Per-session store consulted when building corrective prompts."""

    def __init__(self) -> None:
        self._contexts: dict[str, PreservationContext] = {}

    def create_context(self, session_id: str, prompt: str, files: list[GeneratedFile]) -> PreservationContext:
        context = PreservationContext(
            session_id=session_id,
            original_prompt=prompt,
            user_intent=extract_intent(prompt),
            requirements=extract_requirements(prompt),
            design_decisions=extract_design_decisions(files),
            working_files={
                f.path: PreservedFile(path=f.path, content=f.content, reason="Initial generation") for f in files
            },
        )
        self._contexts[session_id] = context
        logger.debug(
            "preservation_context_created",
            session_id=session_id,
            files=len(files),
            requirements=len(context.requirements),
        )
        return context

    def update_context_with_error(
        self,
        session_id: str,
        error: PreviewError,
        report: DiagnosticReport,
        files: list[GeneratedFile],
    ) -> PreservationContext:
        """Re-bucket ``files`` by the report's failed/retained partition."""
        context = self._require(session_id)
        failed = set(report.failed_files)
        retained = set(report.retained_files)

        context.failed_files = {
            f.path: PreservedFile(path=f.path, content=f.content, errors=[error.message])
            for f in files
            if f.path in failed
        }
        context.working_files = {
            f.path: PreservedFile(path=f.path, content=f.content, reason="No errors detected")
            for f in files
            if f.path in retained
        }
        context.last_updated = time.time()
        return context

    def update_context_with_fix(
        self,
        session_id: str,
        fixed_files: list[GeneratedFile],
        description: str,
    ) -> PreservationContext:
        """Merge fixed files into the working set, replacing by path."""
        context = self._require(session_id)
        for f in fixed_files:
            context.failed_files.pop(f.path, None)
            context.working_files[f.path] = PreservedFile(
                path=f.path,
                content=f.content,
                reason=f"Fixed: {description}",
            )
        context.last_updated = time.time()
        return context

    def get_context(self, session_id: str) -> PreservationContext | None:
        return self._contexts.get(session_id)

    def generate_context_aware_prompt(
        self,
        session_id: str,
        error: PreviewError,
        report: DiagnosticReport,
    ) -> str:
        """Prompt preamble for a retry. Empty when the session has no context."""
        context = self._contexts.get(session_id)
        if context is None:
            return ""

        blocks = [
            f"CONTEXT PRESERVATION - Retry Attempt {error.attempt_number}",
            f"USER INTENT:\n{context.user_intent}",
        ]
        if context.requirements:
            blocks.append(_numbered("KEY REQUIREMENTS:", context.requirements))
        if context.design_decisions:
            blocks.append(_numbered("DESIGN DECISIONS TO PRESERVE:", context.design_decisions))
        if context.working_files:
            lines = ["WORKING FILES (DO NOT MODIFY):"]
            lines += [f"- {f.path} ({f.reason})" for f in context.working_files.values()]
            blocks.append("\n".join(lines))
        if context.failed_files:
            lines = ["FAILED FILES (REGENERATE THESE):"]
            for f in context.failed_files.values():
                lines.append(f"- {f.path}")
                lines += [f"  Error: {err}" for err in f.errors]
            blocks.append("\n".join(lines))

        blocks.append(
            f"IMPORTANT: Keep the same functionality and design. Only fix the {report.category.value} described below."
        )
        return "\n\n".join(blocks)

    def clear_context(self, session_id: str) -> None:
        if self._contexts.pop(session_id, None) is not None:
            logger.debug("preservation_context_cleared", session_id=session_id)

    def sessions(self) -> list[str]:
        return list(self._contexts)

    def summary(self, session_id: str) -> dict:
        context = self._contexts.get(session_id)
        if context is None:
            return {
                "has_context": False,
                "working_files": 0,
                "failed_files": 0,
                "requirements": 0,
                "design_decisions": 0,
                "age_ms": 0,
            }
        return {
            "has_context": True,
            "working_files": len(context.working_files),
            "failed_files": len(context.failed_files),
            "requirements": len(context.requirements),
            "design_decisions": len(context.design_decisions),
            "age_ms": int((time.time() - context.created_at) * 1000),
        }

    def _require(self, session_id: str) -> PreservationContext:
        context = self._contexts.get(session_id)
        if context is None:
            raise ContextNotFoundError(session_id)
        return context


def _numbered(title: str, items: list[str]) -> str:
    return "\n".join([title] + [f"{idx}. {item}" for idx, item in enumerate(items, 1)])
