"""Application configuration from environment variables."""

from __future__ import annotations

from typing import Any

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    palmsight_env: str = "development"
    palmsight_log_level: str = "info"
    palmsight_host: str = "127.0.0.1"
    palmsight_port: int = 8000

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Rule table served by /api/analyze when the request carries none.
    # Empty means the table shipped in palmsight/data.
    palmsight_rules_path: str = ""

    # Seeds the ConfigStore, e.g. PALMSIGHT_ANALYSIS_OVERRIDES='{"edges_percentile": 0.9}'
    palmsight_analysis_overrides: dict[str, Any] = {}

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
