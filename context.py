"""
context.py
Per-application-instance state: configuration, database and translator.

Built once per Streamlit session (or per test) and passed to whoever needs it,
so two instances never share a database handle or language setting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import auth
from config import AppConfig
from db import Database
from i18n import Translator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: AppConfig
    db: Database
    translator: Translator

    def t(self, key: str, **kwargs) -> str:
        return self.translator.t(key, **kwargs)

    def is_feature_enabled(self, feature: str) -> bool:
        return self.config.is_feature_enabled(feature)


def build_context(config: AppConfig | None = None, *, hash_rounds: int = 12) -> AppContext:
    config = config or AppConfig.from_env()
    db = Database(config.db_file)
    db.init_db(auth.hash_password(auth.DEFAULT_ADMIN_PASSWORD, rounds=hash_rounds))
    logger.info("Context ready (db=%s, language=%s)", config.db_file, config.language)
    return AppContext(config=config, db=db, translator=Translator(config.language))
