"""Boundary with the external code regeneration service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from medic.capture.models import GeneratedFile, PreviewError
from medic.self_healing.models import DiagnosticReport, FixSuggestion
from medic.shared.domain.base_model import BaseDomainModel
from medic.shared.domain.exceptions import RegenerationError
from medic.shared.infrastructure.config import settings
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

LANGUAGE_BY_EXTENSION = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".css": "css",
}


@dataclass
class RegenerationRequest(BaseDomainModel):
    """Request body, serialized as camelCase JSON."""

    original_prompt: str
    error_context: dict[str, Any]
    fix_prompt: str
    attempt_number: int
    previous_files: list[GeneratedFile] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        error: PreviewError,
        report: DiagnosticReport,
        original_prompt: str,
        fix_prompt: str,
        attempt_number: int,
        previous_files: list[GeneratedFile],
    ) -> RegenerationRequest:
        return cls(
            original_prompt=original_prompt,
            error_context={
                "error": {
                    "type": error.type.value,
                    "message": error.message,
                    "file": error.file_path,
                    "line": error.line_number,
                },
                "diagnostic": {
                    "category": report.category.value,
                    "rootCause": report.root_cause,
                    "failedFiles": list(report.failed_files),
                    "retainedFiles": list(report.retained_files),
                },
                "fixes": [fix.to_json() for fix in report.suggested_fixes],
            },
            fix_prompt=fix_prompt,
            attempt_number=attempt_number,
            previous_files=list(previous_files),
        )


def infer_language(path: str) -> str:
    dot = path.rfind(".")
    if dot == -1:
        return "plaintext"
    return LANGUAGE_BY_EXTENSION.get(path[dot:].lower(), "plaintext")


def parse_regenerated_files(payload: Any) -> list[GeneratedFile]:
    """Normalize ``{"files": [{path, content, type?}]}`` into GeneratedFile records."""
    if not isinstance(payload, dict) or not isinstance(payload.get("files"), list):
        raise RegenerationError("Regeneration response has no 'files' list")

    files = []
    for raw in payload["files"]:
        if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
            raise RegenerationError("Regeneration response contains a file without a path")
        path = raw["path"]
        content = raw.get("content")
        files.append(
            GeneratedFile(
                path=path,
                content=content if isinstance(content, str) else "",
                language=raw.get("language") or infer_language(path),
                is_new=bool(raw.get("isNew", raw.get("is_new", False))),
            )
        )
    return files


class IRegenerator(ABC):
    """Produces corrected files for a failed preview.

    Implementations raise ``RegenerationError`` on any failure; the
    orchestrator turns that into a failed ``RegenerationResult``.
    """

    @abstractmethod
    async def regenerate(self, request: RegenerationRequest) -> list[GeneratedFile]:
        """Return the regenerated file set."""


class HttpRegenerator(IRegenerator):
    """POSTs the request to the regeneration endpoint.

    Exactly one HTTP call per attempt. Retries are new self-heal attempts,
    never transport-level retries.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint or settings.regenerate_endpoint
        self._timeout = timeout_seconds or settings.regenerator_timeout_seconds
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def regenerate(self, request: RegenerationRequest) -> list[GeneratedFile]:
        logger.info(
            "regeneration_requested",
            endpoint=self._endpoint,
            attempt=request.attempt_number,
            files=len(request.previous_files),
        )
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._endpoint, json=request.to_json())
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:500] if e.response is not None else ""
            status = e.response.status_code if e.response is not None else None
            raise RegenerationError(
                f"Regeneration API failed: {status} {_error_detail(e.response) or body}".rstrip(),
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise RegenerationError(f"Regeneration API unreachable: {e}") from e
        except ValueError as e:
            raise RegenerationError(f"Regeneration API returned invalid JSON: {e}") from e

        files = parse_regenerated_files(payload)
        logger.info("regeneration_completed", attempt=request.attempt_number, files=len(files))
        return files


def _error_detail(response: httpx.Response | None) -> str:
    if response is None:
        return ""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if isinstance(detail, str):
            return detail
    return ""


def describe_fix(fixes: list[FixSuggestion]) -> str:
    """Short description of what a regeneration was asked to fix."""
    automated = [fix for fix in fixes if fix.automated]
    if not automated:
        return "Regenerated code with error context"
    if len(automated) == 1:
        return automated[0].description
    listed = ", ".join(fix.description for fix in automated[:2])
    suffix = "..." if len(automated) > 2 else ""
    return f"Applied {len(automated)} fixes: {listed}{suffix}"
