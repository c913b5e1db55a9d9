"""Runtime settings read from the environment (and a .env file)."""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "planner" / "planner.db"
DEFAULT_TARIFFS_PATH = Path(__file__).parent.parent.parent / "config" / "tariffs.yaml"
DEFAULT_TIMEZONE = "Asia/Jakarta"
DEFAULT_DUE_DAY = 20


@dataclass(frozen=True)
class Settings:
    db_path: Path
    tariffs_path: Path
    timezone: str
    due_day: int
    log_level: str


def _parse_due_day(raw: str) -> int:
    try:
        due_day = int(raw)
    except ValueError:
        raise ConfigError(f"PLANNER_DUE_DAY must be an integer, got {raw!r}") from None
    if not 1 <= due_day <= 28:
        raise ConfigError(f"PLANNER_DUE_DAY must be between 1 and 28, got {due_day}")
    return due_day


def load_settings() -> Settings:
    """Build settings from environment variables."""
    load_dotenv()
    return Settings(
        db_path=Path(os.environ.get("PLANNER_DB_PATH", DEFAULT_DB_PATH)),
        tariffs_path=Path(os.environ.get("PLANNER_TARIFFS", DEFAULT_TARIFFS_PATH)),
        timezone=os.environ.get("PLANNER_TIMEZONE", DEFAULT_TIMEZONE),
        due_day=_parse_due_day(os.environ.get("PLANNER_DUE_DAY", str(DEFAULT_DUE_DAY))),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process, loaded once."""
    return load_settings()
