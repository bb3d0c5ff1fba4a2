"""Configuration package for the microlearning platform."""

from microlearn.config.app_config import (
    ApiConfig,
    AppConfig,
    QuizConfig,
    StoreConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "QuizConfig",
    "StoreConfig",
    "clear_config_cache",
    "load_app_config",
]
