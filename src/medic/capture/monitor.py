"""Error capture: normalizes raw preview failures into typed records.

One ``ErrorMonitor`` instance owns its ring buffers and listener registry.
Nothing here is module-global, so sessions and tests never share buffers.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Any

from medic.capture import detection
from medic.capture.models import (
    BuildPhase,
    BuildPreviewError,
    ConsoleLog,
    ErrorContext,
    ErrorType,
    NetworkPreviewError,
    PreviewError,
    ResourceKind,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
    TimeoutPhase,
    TimeoutPreviewError,
)
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

MAX_ERRORS = 50
MAX_CONSOLE_LOGS = 100
CONSOLE_TAIL = 20

ErrorListener = Callable[[PreviewError], Any]


class ErrorMonitor:
    """Captures the five preview failure classes.

    Each ``capture_*`` call assigns the attempt number, attaches the console
    tail, appends to the bounded error buffer and notifies listeners inline.
    """

    def __init__(
        self,
        *,
        max_errors: int = MAX_ERRORS,
        max_console_logs: int = MAX_CONSOLE_LOGS,
        console_tail: int = CONSOLE_TAIL,
        session_id: str | None = None,
    ) -> None:
        self._errors: deque[PreviewError] = deque(maxlen=max_errors)
        self._console_logs: deque[ConsoleLog] = deque(maxlen=max_console_logs)
        self._console_tail = console_tail
        self._listeners: list[ErrorListener] = []
        self._session_id = session_id

    # ── typed constructors ────────────────────────────────────────────

    def capture_syntax_error(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        line_number: int | None = None,
        column_number: int | None = None,
        file_path: str | None = None,
        syntax_kind: SyntaxKind | None = None,
        expected_token: str | None = None,
        actual_token: str | None = None,
    ) -> SyntaxPreviewError:
        """Capture a parse failure (JSX / TypeScript / import syntax)."""
        error = SyntaxPreviewError(
            message=message,
            code=code,
            line_number=line_number,
            column_number=column_number,
            file_path=file_path,
            syntax_kind=syntax_kind,
            expected_token=expected_token,
            actual_token=actual_token,
        )
        return self._record(error)

    def capture_build_error(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        stack: str | None = None,
        build_phase: BuildPhase | None = None,
        unresolved_imports: list[str] | None = None,
        file_path: str | None = None,
    ) -> BuildPreviewError:
        """Capture a bundling failure."""
        error = BuildPreviewError(
            message=message,
            code=code,
            stack=stack,
            file_path=file_path,
            build_phase=build_phase,
            unresolved_imports=list(unresolved_imports or []),
        )
        return self._record(error)

    def capture_runtime_error(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        stack: str | None = None,
        line_number: int | None = None,
        column_number: int | None = None,
        file_path: str | None = None,
        component_name: str | None = None,
        hook_name: str | None = None,
        is_error_boundary: bool = False,
    ) -> RuntimePreviewError:
        """Capture a crash after the preview started rendering."""
        error = RuntimePreviewError(
            message=message,
            code=code,
            stack=stack,
            line_number=line_number,
            column_number=column_number,
            file_path=file_path,
            component_name=component_name or detection.extract_component_name(stack),
            hook_name=hook_name,
            is_error_boundary=is_error_boundary,
        )
        return self._record(error)

    def capture_network_error(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        failed_url: str,
        status_code: int | None = None,
        resource_kind: ResourceKind | None = None,
    ) -> NetworkPreviewError:
        """Capture a failed resource load (CDN script, stylesheet, image, fetch)."""
        error = NetworkPreviewError(
            message=message,
            code=code,
            failed_url=failed_url,
            status_code=status_code,
            resource_kind=resource_kind,
        )
        return self._record(error)

    def capture_timeout_error(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        duration_ms: int,
        timeout_phase: TimeoutPhase = TimeoutPhase.LOAD,
    ) -> TimeoutPreviewError:
        """Capture a preview that did not finish within its time budget."""
        error = TimeoutPreviewError(
            message=message,
            code=code,
            duration_ms=duration_ms,
            timeout_phase=timeout_phase,
        )
        return self._record(error)

    def capture_bundler_failure(
        self,
        message: str,
        code: str,
        context: ErrorContext,
        *,
        stack: str | None = None,
    ) -> PreviewError:
        """Route an untyped failure to the matching typed constructor.

        Location, tokens, phase and unresolved imports are recovered from the
        message text with the detection heuristics.
        """
        error_type = detection.detect_error_type(message, stack)
        details = detection.parse_error_message(message)

        if error_type is ErrorType.SYNTAX:
            expected, actual = detection.extract_tokens(message)
            return self.capture_syntax_error(
                message,
                code,
                context,
                line_number=details.get("line_number"),
                column_number=details.get("column_number"),
                file_path=details.get("file_path"),
                syntax_kind=detection.infer_syntax_kind(message),
                expected_token=expected,
                actual_token=actual,
            )
        if error_type is ErrorType.BUILD:
            return self.capture_build_error(
                message,
                code,
                context,
                stack=stack,
                build_phase=detection.infer_build_phase(message),
                unresolved_imports=detection.extract_unresolved_imports(message),
                file_path=details.get("file_path"),
            )
        if error_type is ErrorType.NETWORK:
            return self.capture_network_error(message, code, context, failed_url=context.preview_url)
        if error_type is ErrorType.TIMEOUT:
            return self.capture_timeout_error(message, code, context, duration_ms=0)
        return self.capture_runtime_error(
            message,
            code,
            context,
            stack=stack,
            line_number=details.get("line_number"),
            column_number=details.get("column_number"),
            file_path=details.get("file_path"),
        )

    # ── console ───────────────────────────────────────────────────────

    def log_console_output(self, level: str, message: str, args: list[Any] | None = None) -> None:
        """Record one intercepted console line; the oldest line is evicted at capacity."""
        self._console_logs.append(ConsoleLog(level=level, message=message, args=list(args or [])))

    def get_console_logs(self) -> list[ConsoleLog]:
        return list(self._console_logs)

    # ── subscribers ───────────────────────────────────────────────────

    def on_error(self, callback: ErrorListener) -> Callable[[], None]:
        """Subscribe to captured errors. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ── queries ───────────────────────────────────────────────────────

    def get_errors(self) -> list[PreviewError]:
        return list(self._errors)

    def get_latest_error(self) -> PreviewError | None:
        return self._errors[-1] if self._errors else None

    def get_errors_by_type(self, error_type: ErrorType) -> list[PreviewError]:
        return [e for e in self._errors if e.type is error_type]

    def clear_errors(self) -> None:
        """Drop all captured errors and console output."""
        self._errors.clear()
        self._console_logs.clear()

    def clear_errors_by_type(self, error_type: ErrorType) -> None:
        kept = [e for e in self._errors if e.type is not error_type]
        self._errors.clear()
        self._errors.extend(kept)

    # ── internals ─────────────────────────────────────────────────────

    def _record(self, error: PreviewError) -> PreviewError:
        error.attempt_number = self._attempt_number(error)
        error.console_logs = self._recent_logs()
        self._errors.append(error)

        logger.info(
            "preview_error_captured",
            session_id=self._session_id,
            error_type=error.type.value,
            attempt=error.attempt_number,
            file_path=error.file_path,
        )
        self._notify(error)
        return error

    def _attempt_number(self, error: PreviewError) -> int:
        signature = error.signature
        return sum(1 for e in self._errors if e.signature == signature) + 1

    def _recent_logs(self) -> list[str]:
        if self._console_tail <= 0:
            return []
        return [log.format() for log in list(self._console_logs)[-self._console_tail :]]

    def _notify(self, error: PreviewError) -> None:
        # Copy: a listener may unsubscribe itself while being notified.
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception as e:
                logger.error(
                    "error_listener_failed",
                    session_id=self._session_id,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                )
