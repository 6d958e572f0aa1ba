"""Scoring API configuration.

Settings are read from the environment (and a `.env` file at the repo root
for local development) and handed explicitly to `ScoringApiClient`. The
aggregation services take no configuration.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_API_BASE_URL = "https://zevin-backend-ijou.vercel.app"


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, populate_by_name=True)

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, alias="API_BASE_URL")
    api_timeout_seconds: float = Field(default=30.0, alias="API_TIMEOUT_SECONDS")
    harm_score_retries: int = Field(default=1, alias="HARM_SCORE_RETRIES")
    sankey_max_value: float = Field(default=15.0, alias="SANKEY_MAX_VALUE")


def load_settings(env_file: Optional[Path | str] = None) -> ApiSettings:
    """Load settings, letting values from `env_file` fill unset variables."""
    path = Path(env_file) if env_file is not None else ENV_PATH
    if path.exists():
        load_dotenv(dotenv_path=path)
    return ApiSettings()
