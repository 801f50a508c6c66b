"""
Configuration and environment loading.

- Loads a `.env` file (if present) into the environment, then reads the CONNECT_FOUR_* / OPENAI_* variables.
- Settings are built once at process start and passed into the objects that need them; nothing here opens connections.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

from dotenv import load_dotenv


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get(name: str, default: Any, cast: Callable[[str], Any] | None = None) -> Any:
    env = os.environ.get(name)
    if env is None or env == "":
        return default
    return cast(env) if cast else env


@dataclass(frozen=True)
class Settings:
    # Persistence
    database_url: str = "sqlite:///connect_four.db"
    db_echo: bool = False

    # Advisory channel (disabled when no key is configured)
    openai_api_key: str = ""
    advisor_model: str = "gpt-3.5-turbo"
    advisor_timeout_s: float = 10.0

    # Client reconciliation
    poll_interval_s: float = 2.0

    log_level: str = "INFO"

    @property
    def advisor_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_settings(dotenv_path: str | None = None) -> Settings:
    """Read settings from the environment (after loading `.env`)."""
    load_dotenv(dotenv_path)
    return Settings(
        database_url=_get("CONNECT_FOUR_DATABASE_URL", Settings.database_url),
        db_echo=_get("CONNECT_FOUR_DB_ECHO", Settings.db_echo, cast=_as_bool),
        openai_api_key=_get("OPENAI_API_KEY", Settings.openai_api_key),
        advisor_model=_get("CONNECT_FOUR_ADVISOR_MODEL", Settings.advisor_model),
        advisor_timeout_s=_get(
            "CONNECT_FOUR_ADVISOR_TIMEOUT_S", Settings.advisor_timeout_s, cast=float
        ),
        poll_interval_s=_get(
            "CONNECT_FOUR_POLL_INTERVAL_S", Settings.poll_interval_s, cast=float
        ),
        log_level=_get("CONNECT_FOUR_LOG_LEVEL", Settings.log_level).upper(),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
