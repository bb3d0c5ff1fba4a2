"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
with fallback to built-in defaults. MICROLEARN_DB_PATH overrides the
database location.

Usage:
    from microlearn.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.store.db_path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DB_PATH_ENV = "MICROLEARN_DB_PATH"


@dataclass
class StoreConfig:
    """Configuration for the record store."""

    db_path: Path = Path("db/microlearn.db")


@dataclass
class QuizConfig:
    """Configuration for quiz generation."""

    question_source: str = "placeholder"
    generation_delay_seconds: float = 1.5


@dataclass
class ApiConfig:
    """Configuration for the web API."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    quiz: QuizConfig = field(default_factory=QuizConfig)
    api: ApiConfig = field(default_factory=ApiConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "store": {"db_path": "db/microlearn.db"},
        "quiz": {
            "question_source": "placeholder",
            "generation_delay_seconds": 1.5,
        },
        "api": {"cors_origins": ["*"]},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    store_data = data.get("store") or {}
    quiz_data = data.get("quiz") or {}
    api_data = data.get("api") or {}

    db_path = os.environ.get(DB_PATH_ENV) or store_data.get("db_path", "db/microlearn.db")

    return AppConfig(
        store=StoreConfig(db_path=Path(db_path)),
        quiz=QuizConfig(
            question_source=quiz_data.get("question_source", "placeholder"),
            generation_delay_seconds=float(quiz_data.get("generation_delay_seconds", 1.5)),
        ),
        api=ApiConfig(cors_origins=list(api_data.get("cors_origins", ["*"]))),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
