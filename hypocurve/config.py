"""Process configuration from environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


class Settings(BaseSettings):
    log_level: str = "info"

    # Default worker count for per-segment stages when CurveConfig leaves it unset
    max_workers: int = 1

    model_config = SettingsConfigDict(
        env_prefix="HYPOCURVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install the root handler. Level falls back to HYPOCURVE_LOG_LEVEL."""
    name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format=LOG_FORMAT,
    )
