"""Tests for raw-message detection heuristics."""

from __future__ import annotations

import pytest

from medic.capture.detection import (
    detect_error_type,
    extract_component_name,
    extract_tokens,
    extract_unresolved_imports,
    infer_build_phase,
    infer_syntax_kind,
    parse_error_message,
)
from medic.capture.models import BuildPhase, ErrorType, SyntaxKind, normalize_message


class TestDetectErrorType:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Unexpected token '<'", ErrorType.SYNTAX),
            ("Expected corresponding JSX closing tag for <div>", ErrorType.SYNTAX),
            ("Could not resolve 'lodash'", ErrorType.BUILD),
            ("Cannot find module './utils'", ErrorType.BUILD),
            ("GET https://cdn.example.com/x.js 404", ErrorType.NETWORK),
            ("Network error while fetching data", ErrorType.NETWORK),
            ("Preview timed out", ErrorType.TIMEOUT),
            ("Cannot read properties of undefined (reading 'map')", ErrorType.RUNTIME),
        ],
    )
    def test_keywords(self, message, expected):
        assert detect_error_type(message) is expected

    def test_empty_message_defaults_to_runtime(self):
        assert detect_error_type("") is ErrorType.RUNTIME
        assert detect_error_type(None) is ErrorType.RUNTIME


class TestParseErrorMessage:
    def test_line_and_column_from_offset(self):
        parsed = parse_error_message("Unexpected token in src/App.tsx:12:5")
        assert parsed == {"line_number": 12, "column_number": 5, "file_path": "src/App.tsx"}

    def test_line_keyword(self):
        parsed = parse_error_message("Syntax error on line 42")
        assert parsed["line_number"] == 42
        assert "column_number" not in parsed

    def test_file_at(self):
        assert parse_error_message("TypeError at components/Card.jsx")["file_path"] == "components/Card.jsx"

    def test_nothing_to_extract(self):
        assert parse_error_message("something went wrong") == {}
        assert parse_error_message("") == {}


class TestBundlerHelpers:
    def test_unresolved_imports_deduplicated(self):
        message = "Could not resolve 'a'\nCould not resolve \"b\"\nCould not resolve 'a'"
        assert extract_unresolved_imports(message) == ["a", "b"]

    def test_build_phase(self):
        assert infer_build_phase("Could not resolve 'x'") is BuildPhase.RESOLUTION
        assert infer_build_phase("Failed to transform App.tsx") is BuildPhase.TRANSFORMATION
        assert infer_build_phase("Build failed") is BuildPhase.BUNDLING

    def test_syntax_kind(self):
        assert infer_syntax_kind("Unterminated JSX contents") is SyntaxKind.JSX
        assert infer_syntax_kind("Missing closing tag") is SyntaxKind.JSX
        assert infer_syntax_kind("TypeScript: cannot assign") is SyntaxKind.TYPESCRIPT
        assert infer_syntax_kind("Duplicate export 'default'") is SyntaxKind.IMPORT
        assert infer_syntax_kind("Unterminated string constant") is SyntaxKind.OTHER

    def test_tokens(self):
        assert extract_tokens("Expected '}' but found ')'") == ("}", ")")
        assert extract_tokens("Missing semicolon") == (None, None)

    def test_component_name(self):
        assert extract_component_name("Error\n    at Sidebar (Sidebar.tsx:4:9)") == "Sidebar"
        assert extract_component_name(None) is None
        assert extract_component_name("no frames here") is None


class TestNormalizeMessage:
    def test_strips_positions_and_digits(self):
        assert normalize_message("Error on line 12 at App.tsx:7:3") == normalize_message(
            "error on LINE 99 at App.tsx:1:44"
        )

    def test_distinct_text_stays_distinct(self):
        assert normalize_message("Unexpected token") != normalize_message("Missing semicolon")
