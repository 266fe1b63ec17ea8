"""Process-wide singletons shared by the API routes."""

from __future__ import annotations

import logging
from functools import lru_cache

from palmsight.config import Settings, settings
from palmsight.engine.config import AnalysisConfig, ConfigStore
from palmsight.engine.rules import RulesTable, default_rules, load_rules

logger = logging.getLogger(__name__)

_store: ConfigStore | None = None


def get_settings() -> Settings:
    return settings


def get_config_store() -> ConfigStore:
    """Get or create the global config store, seeded from settings."""
    global _store
    if _store is None:
        defaults = AnalysisConfig(**settings.palmsight_analysis_overrides)
        _store = ConfigStore(defaults)
        if settings.palmsight_analysis_overrides:
            logger.info("Analysis defaults overridden: %s", sorted(settings.palmsight_analysis_overrides))
    return _store


@lru_cache(maxsize=1)
def get_rules() -> RulesTable:
    """Default rule table, read once per process."""
    if settings.palmsight_rules_path:
        return load_rules(settings.palmsight_rules_path)
    return default_rules()
