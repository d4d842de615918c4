"""Tests for structlog configuration and privacy redaction."""

import io
import json

import pytest
import structlog

from medic.shared.infrastructure import logging as medic_logging
from medic.shared.infrastructure.config import settings
from medic.shared.infrastructure.logging import configure_logging, privacy_redactor


def _redact(**event):
    return privacy_redactor(None, "info", {"event": "test", **event})


class TestPrivacyRedactor:
    def test_email(self):
        assert _redact(user="dev@example.com")["user"] == "[EMAIL_REDACTED]"

    def test_home_paths(self):
        assert _redact(path="/Users/alice/project/src")["path"] == "[HOME_REDACTED]/project/src"
        assert _redact(path="/home/bob/app")["path"] == "[HOME_REDACTED]/app"

    def test_secrets_and_bearer_tokens(self):
        assert _redact(text="api_key=abc123")["text"] == "api_key=[REDACTED]"
        assert _redact(text="password: hunter2")["text"] == "password=[REDACTED]"
        assert _redact(header="Authorization: Bearer abc.def")["header"] == "Authorization: Bearer [TOKEN_REDACTED]"

    def test_nested_values(self):
        event = _redact(payload={"files": ["/home/bob/a.ts"], "owner": "dev@example.com"}, attempt=2)
        assert event["payload"] == {"files": ["[HOME_REDACTED]/a.ts"], "owner": "[EMAIL_REDACTED]"}
        assert event["attempt"] == 2

    def test_disabled(self, monkeypatch):
        monkeypatch.setattr(medic_logging.settings, "log_redaction_enabled", False)
        assert _redact(user="dev@example.com")["user"] == "dev@example.com"


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_production_renders_redacted_json(self, monkeypatch, reset_structlog):
        stream = io.StringIO()
        monkeypatch.setattr(settings, "app_env", "production")

        configure_logging(stream)
        structlog.get_logger("medic.test").info("self_heal_started", owner="dev@example.com", attempt=1)

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["event"] == "self_heal_started"
        assert line["owner"] == "[EMAIL_REDACTED]"
        assert line["attempt"] == 1
        assert line["level"] == "info"
        assert line["logger"] == "medic.test"
