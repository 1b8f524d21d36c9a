from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    newsapi_key: Optional[str] = None
    finnhub_api_key: Optional[str] = None
    hf_api_key: Optional[str] = None
    hf_model: str = Field(default="ProsusAI/finbert")
    hf_base_url: str = Field(default="https://router.huggingface.co/hf-inference/models")
    twelve_data_key: Optional[str] = None

    request_timeout_sec: int = Field(default=15)
    news_max_items: int = Field(default=6)
    news_min_relevant: int = Field(default=3)
    news_page_size: int = Field(default=10)
    secondary_news_lookback_days: int = Field(default=7)
    default_backtest_days: int = Field(default=30)

    symbol_table_path: Optional[Path] = None
    log_level: str = Field(default="INFO")


def get_settings() -> Settings:
    return Settings()
