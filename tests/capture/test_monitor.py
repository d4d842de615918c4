"""Tests for ErrorMonitor."""

from __future__ import annotations

from medic.capture.models import (
    BuildPhase,
    BuildPreviewError,
    ErrorType,
    NetworkPreviewError,
    ResourceKind,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
    TimeoutPhase,
)
from medic.capture.monitor import ErrorMonitor


class TestTypedConstructors:
    def test_syntax_error_fields(self, monitor, error_context):
        err = monitor.capture_syntax_error(
            "Expected corresponding JSX closing tag for <div>",
            "<div>",
            error_context,
            line_number=7,
            column_number=6,
            file_path="src/App.tsx",
            syntax_kind=SyntaxKind.JSX,
        )
        assert isinstance(err, SyntaxPreviewError)
        assert err.type is ErrorType.SYNTAX
        assert err.syntax_kind is SyntaxKind.JSX
        assert err.location == "src/App.tsx:7:6"
        assert err.attempt_number == 1
        assert err.id
        assert err.timestamp > 0

    def test_each_capture_gets_unique_id(self, monitor, error_context):
        first = monitor.capture_runtime_error("boom", "", error_context)
        second = monitor.capture_runtime_error("boom", "", error_context)
        assert first.id != second.id

    def test_build_error_copies_import_list(self, monitor, error_context):
        imports = ["react-charts-pro"]
        err = monitor.capture_build_error(
            "Could not resolve 'react-charts-pro'",
            "",
            error_context,
            build_phase=BuildPhase.RESOLUTION,
            unresolved_imports=imports,
        )
        imports.append("other")
        assert isinstance(err, BuildPreviewError)
        assert err.unresolved_imports == ["react-charts-pro"]

    def test_runtime_error_component_from_stack(self, monitor, error_context):
        err = monitor.capture_runtime_error(
            "Cannot read property 'map' of undefined",
            "",
            error_context,
            stack="TypeError: ...\n    at Dashboard (src/Dashboard.tsx:12:5)\n    at App (src/App.tsx:3:1)",
        )
        assert isinstance(err, RuntimePreviewError)
        assert err.component_name == "Dashboard"

    def test_network_and_timeout_variants(self, monitor, error_context):
        net = monitor.capture_network_error(
            "Failed to load resource",
            "",
            error_context,
            failed_url="https://cdn.example.com/lib.js",
            status_code=404,
            resource_kind=ResourceKind.SCRIPT,
        )
        slow = monitor.capture_timeout_error("Preview timed out", "", error_context, duration_ms=10000)

        assert isinstance(net, NetworkPreviewError)
        assert net.status_code == 404
        assert slow.type is ErrorType.TIMEOUT
        assert slow.timeout_phase is TimeoutPhase.LOAD
        assert slow.duration_ms == 10000


class TestAttemptNumber:
    def test_same_signature_increments(self, monitor, error_context):
        first = monitor.capture_syntax_error("Unexpected token (3:5)", "", error_context)
        second = monitor.capture_syntax_error("Unexpected token (9:12)", "", error_context)
        third = monitor.capture_syntax_error("unexpected TOKEN (1:1)", "", error_context)
        assert [first.attempt_number, second.attempt_number, third.attempt_number] == [1, 2, 3]

    def test_different_message_starts_at_one(self, monitor, error_context):
        monitor.capture_syntax_error("Unexpected token", "", error_context)
        other = monitor.capture_syntax_error("Missing semicolon", "", error_context)
        assert other.attempt_number == 1

    def test_different_type_same_message_starts_at_one(self, monitor, error_context):
        monitor.capture_syntax_error("Something broke", "", error_context)
        runtime = monitor.capture_runtime_error("Something broke", "", error_context)
        assert runtime.attempt_number == 1

    def test_monitors_do_not_share_history(self, error_context):
        a = ErrorMonitor(session_id="a")
        b = ErrorMonitor(session_id="b")
        a.capture_runtime_error("boom", "", error_context)
        a.capture_runtime_error("boom", "", error_context)
        assert b.capture_runtime_error("boom", "", error_context).attempt_number == 1

    def test_cleared_errors_reset_count(self, monitor, error_context):
        monitor.capture_runtime_error("boom", "", error_context)
        monitor.clear_errors()
        assert monitor.capture_runtime_error("boom", "", error_context).attempt_number == 1


class TestBuffers:
    def test_error_buffer_is_capped(self, error_context):
        monitor = ErrorMonitor(max_errors=3)
        for i in range(5):
            monitor.capture_runtime_error(f"error {chr(97 + i)}", "", error_context)
        errors = monitor.get_errors()
        assert len(errors) == 3
        assert [e.message for e in errors] == ["error c", "error d", "error e"]
        assert monitor.get_latest_error().message == "error e"

    def test_console_buffer_is_capped(self):
        monitor = ErrorMonitor(max_console_logs=5)
        for i in range(8):
            monitor.log_console_output("log", f"line {i}")
        logs = monitor.get_console_logs()
        assert len(logs) == 5
        assert logs[0].message == "line 3"

    def test_console_tail_attached(self, error_context):
        monitor = ErrorMonitor(console_tail=20)
        for i in range(25):
            monitor.log_console_output("log", f"line {i}")
        monitor.log_console_output("error", "it failed")
        err = monitor.capture_runtime_error("boom", "", error_context)
        assert len(err.console_logs) == 20
        assert err.console_logs[-1] == "[error] it failed"
        assert err.console_logs[0] == "[log] line 6"

    def test_latest_error_empty(self, monitor):
        assert monitor.get_latest_error() is None


class TestQueries:
    def test_errors_by_type_and_clear_by_type(self, monitor, error_context):
        monitor.capture_syntax_error("Unexpected token", "", error_context)
        monitor.capture_runtime_error("boom", "", error_context)
        monitor.capture_syntax_error("Missing semicolon", "", error_context)

        assert len(monitor.get_errors_by_type(ErrorType.SYNTAX)) == 2
        monitor.clear_errors_by_type(ErrorType.SYNTAX)
        assert [e.type for e in monitor.get_errors()] == [ErrorType.RUNTIME]

    def test_clear_errors_drops_console(self, monitor, error_context):
        monitor.log_console_output("warn", "careful")
        monitor.capture_runtime_error("boom", "", error_context)
        monitor.clear_errors()
        assert monitor.get_errors() == []
        assert monitor.get_console_logs() == []


class TestListeners:
    def test_listener_receives_error(self, monitor, error_context):
        seen = []
        monitor.on_error(seen.append)
        err = monitor.capture_runtime_error("boom", "", error_context)
        assert seen == [err]

    def test_unsubscribe(self, monitor, error_context):
        seen = []
        unsubscribe = monitor.on_error(seen.append)
        unsubscribe()
        unsubscribe()
        monitor.capture_runtime_error("boom", "", error_context)
        assert seen == []

    def test_failing_listener_is_isolated(self, monitor, error_context):
        seen = []

        def broken(error):
            raise RuntimeError("listener exploded")

        monitor.on_error(broken)
        monitor.on_error(seen.append)

        err = monitor.capture_runtime_error("boom", "", error_context)

        assert seen == [err]
        assert monitor.get_errors() == [err]


class TestBundlerFailure:
    def test_unresolved_import_routes_to_build(self, monitor, error_context):
        err = monitor.capture_bundler_failure("Could not resolve 'react-charts-pro'", "", error_context)
        assert isinstance(err, BuildPreviewError)
        assert err.unresolved_imports == ["react-charts-pro"]
        assert err.build_phase is BuildPhase.RESOLUTION

    def test_jsx_message_routes_to_syntax(self, monitor, error_context):
        err = monitor.capture_bundler_failure(
            "Expected corresponding JSX closing tag for <div> in src/App.tsx:7:6",
            "",
            error_context,
        )
        assert isinstance(err, SyntaxPreviewError)
        assert err.syntax_kind is SyntaxKind.JSX
        assert err.line_number == 7
        assert err.column_number == 6
        assert err.file_path == "src/App.tsx"

    def test_unknown_message_routes_to_runtime(self, monitor, error_context):
        err = monitor.capture_bundler_failure("x is not a function", "", error_context)
        assert err.type is ErrorType.RUNTIME

    def test_network_uses_preview_url(self, monitor, error_context):
        err = monitor.capture_bundler_failure("Failed to load resource: 404", "", error_context)
        assert isinstance(err, NetworkPreviewError)
        assert err.failed_url == error_context.preview_url
