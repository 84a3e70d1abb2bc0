"""
config.py
App configuration (defaults + environment overrides) and logging setup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from datatable import PAGE_SIZE

APP_NAME = "Gym Admin Console"
DEFAULT_DB_FILE = Path(__file__).with_name("gym.db")
DEFAULT_LANGUAGE = "en"
DEFAULT_CURRENCY = "S/"
SUPPORTED_LANGUAGES = ("en", "es")

# Optional sections of the console. Members, plans and payments are always on.
DEFAULT_FEATURES = {
    "classes": True,
    "trainers": True,
    "equipment": True,
    "announcements": True,
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def _env_flag(env, name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppConfig:
    db_file: Path = DEFAULT_DB_FILE
    language: str = DEFAULT_LANGUAGE
    currency: str = DEFAULT_CURRENCY
    page_size: int = PAGE_SIZE
    log_level: str = "INFO"
    features: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_FEATURES))

    def is_feature_enabled(self, feature: str) -> bool:
        return bool(self.features.get(feature, False))

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        language = env.get("GYM_LANGUAGE", DEFAULT_LANGUAGE).strip().lower()
        if language not in SUPPORTED_LANGUAGES:
            language = DEFAULT_LANGUAGE

        features = {
            name: _env_flag(env, f"GYM_FEATURE_{name.upper()}", default)
            for name, default in DEFAULT_FEATURES.items()
        }

        return cls(
            db_file=Path(env.get("GYM_DB_FILE", str(DEFAULT_DB_FILE))),
            language=language,
            currency=env.get("GYM_CURRENCY", DEFAULT_CURRENCY),
            log_level=env.get("GYM_LOG_LEVEL", "INFO").upper(),
            features=features,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
