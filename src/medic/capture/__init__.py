"""Preview failure capture.

Public API:
    ErrorMonitor   - typed capture constructors, ring buffers, listeners
    LoadWatchdog   - preview-load timeout
    PreviewError   - base record (see the typed subclasses)
    ErrorContext   - snapshot handed over by the preview collaborator
"""

from medic.capture.detection import detect_error_type, parse_error_message
from medic.capture.models import (
    BuildPhase,
    BuildPreviewError,
    ConsoleLog,
    ErrorContext,
    ErrorType,
    GeneratedFile,
    NetworkPreviewError,
    PreviewError,
    ResourceKind,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
    TimeoutPhase,
    TimeoutPreviewError,
    normalize_message,
    preview_error_from_json,
)
from medic.capture.monitor import ErrorMonitor
from medic.capture.watchdog import LoadWatchdog

__all__ = [
    "BuildPhase",
    "BuildPreviewError",
    "ConsoleLog",
    "ErrorContext",
    "ErrorMonitor",
    "ErrorType",
    "GeneratedFile",
    "LoadWatchdog",
    "NetworkPreviewError",
    "PreviewError",
    "ResourceKind",
    "RuntimePreviewError",
    "SyntaxKind",
    "SyntaxPreviewError",
    "TimeoutPhase",
    "TimeoutPreviewError",
    "detect_error_type",
    "normalize_message",
    "parse_error_message",
    "preview_error_from_json",
]
