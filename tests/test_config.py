from datetime import timedelta

import pytest

from page_composer.config import EngineSettings, load_settings


def test_defaults_from_empty_environment():
    settings = load_settings({})

    assert settings == EngineSettings()
    assert settings.session_ttl == timedelta(minutes=30)
    assert not settings.augmentation_enabled


def test_reads_environment_values():
    settings = load_settings(
        {
            "ENVIRONMENT": "prod",
            "PROJECT_ID": "demo-project",
            "PAGE_COMPOSER_HISTORY_LIMIT": "10",
            "PAGE_COMPOSER_SESSION_TTL": "60",
            "PAGE_COMPOSER_ALTERNATES": "3",
            "PAGE_COMPOSER_FOLD_DEPTH": "1",
            "PAGE_COMPOSER_CONFIDENCE_THRESHOLD": "0.75",
            "GEMINI_API_KEY": "secret",
            "GEMINI_MODEL": "gemini-2.5-flash",
        }
    )

    assert settings.environment == "prod"
    assert settings.project_id == "demo-project"
    assert settings.history_limit == 10
    assert settings.session_ttl == timedelta(seconds=60)
    assert settings.alternate_count == 3
    assert settings.fold_depth == 1
    assert settings.confidence_threshold == 0.75
    assert settings.augmentation_enabled
    assert settings.gemini_model == "gemini-2.5-flash"


def test_invalid_number_is_reported():
    with pytest.raises(ValueError, match="PAGE_COMPOSER_HISTORY_LIMIT"):
        load_settings({"PAGE_COMPOSER_HISTORY_LIMIT": "many"})


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("PAGE_COMPOSER_FOLD_DEPTH", "4")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    settings = load_settings()

    assert settings.fold_depth == 4
    assert not settings.augmentation_enabled
