"""Tests for preview error records and their JSON form."""

from __future__ import annotations

import pytest

from medic.capture.models import (
    BuildPhase,
    BuildPreviewError,
    ErrorType,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
    TimeoutPreviewError,
    preview_error_from_json,
)


class TestPreviewErrorFromJson:
    def test_typed_subclass_and_enums(self):
        err = preview_error_from_json(
            {
                "type": "syntax",
                "message": "Expected corresponding JSX closing tag for <div>",
                "filePath": "src/App.tsx",
                "lineNumber": 7,
                "syntaxKind": "jsx",
            }
        )
        assert isinstance(err, SyntaxPreviewError)
        assert err.type is ErrorType.SYNTAX
        assert err.syntax_kind is SyntaxKind.JSX
        assert err.line_number == 7

    def test_build_error(self):
        err = preview_error_from_json(
            {"type": "build", "message": "x", "buildPhase": "resolution", "unresolvedImports": ["lodash"]}
        )
        assert isinstance(err, BuildPreviewError)
        assert err.build_phase is BuildPhase.RESOLUTION
        assert err.unresolved_imports == ["lodash"]

    def test_round_trip_keeps_identity(self):
        original = TimeoutPreviewError(message="slow", duration_ms=10000)
        restored = preview_error_from_json(original.to_json())
        assert restored == original

    @pytest.mark.parametrize("payload", [{"message": "x"}, {"type": "explosion", "message": "x"}])
    def test_unknown_type(self, payload):
        with pytest.raises(ValueError, match="Unknown preview error type"):
            preview_error_from_json(payload)


class TestSignatureAndLocation:
    def test_signature_ignores_positions(self):
        a = SyntaxPreviewError(message="Unexpected token at line 4 (4:12)")
        b = SyntaxPreviewError(message="Unexpected token at line 19 (19:3)")
        assert a.signature == b.signature

    def test_signature_includes_type(self):
        assert SyntaxPreviewError(message="boom").signature != RuntimePreviewError(message="boom").signature

    def test_location(self):
        assert RuntimePreviewError(message="x").location is None
        assert RuntimePreviewError(message="x", file_path="a.ts", line_number=3).location == "a.ts:3"
