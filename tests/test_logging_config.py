import json
import logging

import pytest

from page_composer.config import EngineSettings
from page_composer.logging_config import (
    StructuredFormatter,
    configure_logging,
    get_session_id,
    session_context,
    set_session_id,
    setup_logging,
)


def _record(**extra):
    record = logging.LogRecord("page_composer.test", logging.INFO, __file__, 10, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_extras():
    set_session_id("session_abc")
    try:
        payload = json.loads(StructuredFormatter().format(_record(intents=["reorder"], transforms=1)))
    finally:
        set_session_id(None)

    assert payload["message"] == "hello world"
    assert payload["severity"] == "INFO"
    assert payload["session_id"] == "session_abc"
    assert payload["intents"] == ["reorder"]
    assert payload["transforms"] == 1
    assert "args" not in payload


def test_formatter_omits_missing_session_id():
    payload = json.loads(StructuredFormatter().format(_record()))

    assert "session_id" not in payload


def test_setup_logging_in_dev_uses_stdout_handler():
    setup_logging(environment="dev", project_id="demo-project")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(handler.formatter, StructuredFormatter) for handler in root.handlers)


def test_configure_logging_passes_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "page_composer.logging_config.setup_logging",
        lambda **kwargs: calls.append(kwargs),
    )

    configure_logging(EngineSettings(environment="prod", project_id="demo-project"))

    assert calls == [{"environment": "prod", "project_id": "demo-project"}]


def test_session_context_restores_previous_value():
    with session_context("outer"):
        with session_context("inner"):
            assert get_session_id() == "inner"
        assert get_session_id() == "outer"
    assert get_session_id() is None


def test_session_context_resets_on_error():
    with pytest.raises(RuntimeError):
        with session_context("failing"):
            raise RuntimeError("boom")

    assert get_session_id() is None
