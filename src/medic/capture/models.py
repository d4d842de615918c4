"""Domain models for captured preview failures."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from medic.shared.domain.base_model import BaseDomainModel, to_snake_case


class ErrorType(Enum):
    """Closed taxonomy of preview failures."""

    SYNTAX = "syntax"
    BUILD = "build"
    RUNTIME = "runtime"
    NETWORK = "network"
    TIMEOUT = "timeout"


class SyntaxKind(Enum):
    JSX = "jsx"
    TYPESCRIPT = "typescript"
    IMPORT = "import"
    OTHER = "other"


class BuildPhase(Enum):
    BUNDLING = "bundling"
    TRANSFORMATION = "transformation"
    RESOLUTION = "resolution"


class ResourceKind(Enum):
    SCRIPT = "script"
    STYLE = "style"
    IMAGE = "image"
    FETCH = "fetch"


class TimeoutPhase(Enum):
    BUNDLE = "bundle"
    RENDER = "render"
    LOAD = "load"


_LINE_RE = re.compile(r"line \d+")
_OFFSET_RE = re.compile(r":\d+")
_DIGITS_RE = re.compile(r"\d+")


def normalize_message(message: str) -> str:
    """Strip line numbers, column offsets and digits so near-identical errors compare equal."""
    text = message.strip().lower()
    text = _LINE_RE.sub("line X", text)
    text = _OFFSET_RE.sub(":X", text)
    return _DIGITS_RE.sub("N", text)


@dataclass
class GeneratedFile(BaseDomainModel):
    """A single file produced by the code generator."""

    path: str
    content: str = ""
    language: str = "plaintext"
    is_new: bool = False

    @property
    def basename(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass
class ConsoleLog(BaseDomainModel):
    """One line of console output intercepted from the preview."""

    level: str
    message: str
    timestamp: float = field(default_factory=time.time)
    args: list[Any] = field(default_factory=list)

    def format(self) -> str:
        return f"[{self.level}] {self.message}"


@dataclass
class ErrorContext(BaseDomainModel):
    """Everything the preview collaborator knows at the moment of failure."""

    generated_files: list[GeneratedFile] = field(default_factory=list)
    bundled_code: str = ""
    preview_url: str = ""
    user_prompt: str = ""
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class PreviewError(BaseDomainModel):
    """Common shape of every captured failure.

    Use one of the typed subclasses; ``type`` is the discriminator.
    """

    message: str
    code: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)
    stack: str | None = None
    line_number: int | None = None
    column_number: int | None = None
    file_path: str | None = None
    component_name: str | None = None
    console_logs: list[str] = field(default_factory=list)
    attempt_number: int = 1
    type: ErrorType = field(default=ErrorType.RUNTIME, init=False)

    @property
    def signature(self) -> tuple[ErrorType, str]:
        """(type, normalized message) pair used to decide whether two errors are the same."""
        return (self.type, normalize_message(self.message))

    @property
    def location(self) -> str | None:
        if not self.file_path:
            return None
        loc = self.file_path
        if self.line_number:
            loc += f":{self.line_number}"
            if self.column_number:
                loc += f":{self.column_number}"
        return loc


@dataclass
class SyntaxPreviewError(PreviewError):
    syntax_kind: SyntaxKind | None = None
    expected_token: str | None = None
    actual_token: str | None = None
    type: ErrorType = field(default=ErrorType.SYNTAX, init=False)


@dataclass
class BuildPreviewError(PreviewError):
    build_phase: BuildPhase | None = None
    unresolved_imports: list[str] = field(default_factory=list)
    type: ErrorType = field(default=ErrorType.BUILD, init=False)


@dataclass
class RuntimePreviewError(PreviewError):
    hook_name: str | None = None
    is_error_boundary: bool = False
    type: ErrorType = field(default=ErrorType.RUNTIME, init=False)


@dataclass
class NetworkPreviewError(PreviewError):
    failed_url: str = ""
    status_code: int | None = None
    resource_kind: ResourceKind | None = None
    type: ErrorType = field(default=ErrorType.NETWORK, init=False)


@dataclass
class TimeoutPreviewError(PreviewError):
    duration_ms: int = 0
    timeout_phase: TimeoutPhase = TimeoutPhase.LOAD
    type: ErrorType = field(default=ErrorType.TIMEOUT, init=False)


ERROR_CLASSES: dict[ErrorType, type[PreviewError]] = {
    ErrorType.SYNTAX: SyntaxPreviewError,
    ErrorType.BUILD: BuildPreviewError,
    ErrorType.RUNTIME: RuntimePreviewError,
    ErrorType.NETWORK: NetworkPreviewError,
    ErrorType.TIMEOUT: TimeoutPreviewError,
}

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "syntax_kind": SyntaxKind,
    "build_phase": BuildPhase,
    "resource_kind": ResourceKind,
    "timeout_phase": TimeoutPhase,
}


def preview_error_from_json(data: dict[str, Any]) -> PreviewError:
    """Rebuild a typed PreviewError from its camelCase JSON form.

    Raises:
        ValueError: If ``type`` is missing or not a known error type
    """
    raw_type = data.get("type")
    try:
        error_type = ErrorType(raw_type)
    except ValueError as e:
        raise ValueError(f"Unknown preview error type: {raw_type!r}") from e

    payload = {k: v for k, v in data.items() if k != "type"}
    for key in list(payload):
        enum_cls = _ENUM_FIELDS.get(to_snake_case(key))
        if enum_cls is not None and payload[key] is not None:
            payload[key] = enum_cls(payload[key])

    return ERROR_CLASSES[error_type].from_json(payload)
