"""Translator configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shift_engine.sql_toolkit._types import EngineType

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SQLSHIFT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLSHIFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Engines
    default_source_engine: EngineType = EngineType.AUTO
    default_target_engine: EngineType = EngineType.GENERIC

    # Trial parsing order used when the source engine is ``auto``.
    auto_detect_candidates: list[EngineType] = [
        EngineType.PRESTO,
        EngineType.HIVE,
        EngineType.SPARK,
    ]

    # Logging
    log_level: str = "WARNING"
    structured_logging: bool = False

    @field_validator("default_source_engine", "default_target_engine", mode="before")
    @classmethod
    def normalise_engine(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("default_target_engine")
    @classmethod
    def target_not_auto(cls, v: EngineType) -> EngineType:
        if v is EngineType.AUTO:
            raise ValueError("default_target_engine cannot be 'auto'")
        return v

    @field_validator("auto_detect_candidates", mode="before")
    @classmethod
    def normalise_candidates(cls, v: object) -> object:
        if isinstance(v, list):
            return [c.strip().lower() if isinstance(c, str) else c for c in v]
        return v

    @field_validator("auto_detect_candidates")
    @classmethod
    def candidates_not_auto(cls, v: list[EngineType]) -> list[EngineType]:
        if EngineType.AUTO in v:
            raise ValueError("'auto' cannot be an auto-detect candidate")
        if len(set(v)) != len(v):
            raise ValueError("auto-detect candidates must be unique")
        return v

    @field_validator("log_level")
    @classmethod
    def valid_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings (source=%s, target=%s)",
            settings.default_source_engine.value,
            settings.default_target_engine.value,
        )

    return settings
