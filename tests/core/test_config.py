"""Unit tests for src/core/config.py"""

from pathlib import Path

import pytest

from src.core.config import Settings, load_settings

ENV_VARS = [
    "CONNECT_FOUR_DATABASE_URL",
    "CONNECT_FOUR_DB_ECHO",
    "OPENAI_API_KEY",
    "CONNECT_FOUR_ADVISOR_MODEL",
    "CONNECT_FOUR_ADVISOR_TIMEOUT_S",
    "CONNECT_FOUR_POLL_INTERVAL_S",
    "CONNECT_FOUR_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """No configuration in the environment; returns the path of an empty .env file."""
    for name in ENV_VARS:
        # set first so that teardown restores the original value, whatever load_dotenv wrote
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    dotenv = tmp_path / ".env"
    dotenv.write_text("")
    return dotenv


def test_defaults(clean_env: Path) -> None:
    settings = load_settings(str(clean_env))
    assert settings == Settings()
    assert settings.database_url == "sqlite:///connect_four.db"
    assert settings.advisor_model == "gpt-3.5-turbo"
    assert settings.advisor_timeout_s == 10.0
    assert settings.poll_interval_s == 2.0
    assert not settings.advisor_enabled


def test_environment_overrides(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONNECT_FOUR_DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("CONNECT_FOUR_DB_ECHO", "true")
    monkeypatch.setenv("CONNECT_FOUR_ADVISOR_TIMEOUT_S", "2.5")
    monkeypatch.setenv("CONNECT_FOUR_LOG_LEVEL", "debug")

    settings = load_settings(str(clean_env))

    assert settings.database_url == "sqlite:///:memory:"
    assert settings.db_echo is True
    assert settings.advisor_timeout_s == 2.5
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_loaded(clean_env: Path) -> None:
    clean_env.write_text("OPENAI_API_KEY=sk-test\nCONNECT_FOUR_POLL_INTERVAL_S=0.5\n")
    settings = load_settings(str(clean_env))

    assert settings.advisor_enabled
    assert settings.poll_interval_s == 0.5
