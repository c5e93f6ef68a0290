"""Settings read from environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .history import MAX_HISTORY_ITEMS

HISTORY_PATH_ENV = "PROTEIN_HISTORY_PATH"
HISTORY_LIMIT_ENV = "PROTEIN_HISTORY_LIMIT"
LOG_LEVEL_ENV = "PROTEIN_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    history_path: Path = Path("history.db")
    history_limit: int = MAX_HISTORY_ITEMS
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.history_limit <= 0:
            raise ValueError(f"{HISTORY_LIMIT_ENV} must be greater than 0")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"{LOG_LEVEL_ENV} must be one of: {', '.join(_LOG_LEVELS)}")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    raw_limit = env.get(HISTORY_LIMIT_ENV, "").strip()
    if raw_limit:
        if not raw_limit.isdigit():
            raise ValueError(f"{HISTORY_LIMIT_ENV} must be a positive integer, got {raw_limit!r}")
        limit = int(raw_limit)
    else:
        limit = MAX_HISTORY_ITEMS
    return Settings(
        history_path=Path(env.get(HISTORY_PATH_ENV, "history.db")),
        history_limit=limit,
        log_level=env.get(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING",
    )
