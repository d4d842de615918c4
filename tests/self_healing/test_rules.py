"""Tests for the root-cause rule table."""

from __future__ import annotations

import pytest

from medic.capture.models import (
    ErrorType,
    NetworkPreviewError,
    RuntimePreviewError,
    SyntaxKind,
    SyntaxPreviewError,
    TimeoutPhase,
    TimeoutPreviewError,
)
from medic.self_healing.rules import ROOT_CAUSE_RULES, RootCauseRule, match_root_cause, quoted_module


@pytest.mark.parametrize(
    "error, pattern",
    [
        (SyntaxPreviewError(message="Expected corresponding JSX closing tag for <div>"), "unclosed-tag"),
        (SyntaxPreviewError(message="Unexpected token '<'"), "unexpected-token"),
        (SyntaxPreviewError(message="Type 'string' is not assignable", syntax_kind=SyntaxKind.TYPESCRIPT), "type-mismatch"),
        (SyntaxPreviewError(message="Cannot use import statement outside a module"), "import-error"),
        (RuntimePreviewError(message="Cannot read properties of null (reading 'x')"), "null-reference"),
        (RuntimePreviewError(message="Invalid hook call"), "hooks-error"),
        (RuntimePreviewError(message="Element type is invalid: expected a string"), "invalid-element"),
        (NetworkPreviewError(message="404", failed_url="https://cdn.example.com/lib.js"), "network-failure"),
        (TimeoutPreviewError(message="Preview load timed out"), "timeout"),
    ],
)
def test_patterns(error, pattern):
    assert match_root_cause(error).pattern == pattern


def test_first_match_wins():
    err = SyntaxPreviewError(message="Unexpected token in import statement")
    assert match_root_cause(err).pattern == "unexpected-token"


def test_rules_only_apply_to_their_error_type():
    err = RuntimePreviewError(message="Unexpected token '<'")
    assert match_root_cause(err).pattern == "unknown"


def test_type_mismatch_needs_typescript_kind():
    err = SyntaxPreviewError(message="Type error somewhere")
    assert match_root_cause(err).pattern == "unknown"


def test_network_and_timeout_causes_carry_details():
    net = NetworkPreviewError(message="failed", failed_url="https://cdn.example.com/lib.js")
    slow = TimeoutPreviewError(message="slow", timeout_phase=TimeoutPhase.RENDER)
    assert match_root_cause(net).primary_cause == "Failed to load resource: https://cdn.example.com/lib.js"
    assert match_root_cause(slow).primary_cause == "Operation timed out during render"


def test_unknown_keeps_raw_message():
    cause = match_root_cause(RuntimePreviewError(message="Something odd"))
    assert cause.pattern == "unknown"
    assert cause.primary_cause == "Something odd"
    assert not cause.is_known


def test_failing_rule_is_skipped():
    def explode(error, msg):
        raise TypeError("bad rule")

    rules = [
        RootCauseRule(pattern="broken", error_type=ErrorType.RUNTIME, applies=explode, explain=lambda e: None),
        *ROOT_CAUSE_RULES,
    ]
    cause = match_root_cause(RuntimePreviewError(message="x is undefined"), rules)
    assert cause.pattern == "null-reference"


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Could not resolve 'react-charts-pro'", "react-charts-pro"),
        ('Cannot find module "lodash/merge"', "lodash/merge"),
        ("no quotes here", None),
        ("", None),
    ],
)
def test_quoted_module(message, expected):
    assert quoted_module(message) == expected
