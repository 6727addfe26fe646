"""Configuration package for LearnBook."""

from learnbook.config.app_config import (
    AIConfig,
    AppConfig,
    CacheConfig,
    ProviderConfig,
    SearchConfig,
    clear_config_cache,
    get_provider_config,
    is_usable_key,
    load_app_config,
)

__all__ = [
    "AIConfig",
    "AppConfig",
    "CacheConfig",
    "ProviderConfig",
    "SearchConfig",
    "clear_config_cache",
    "get_provider_config",
    "is_usable_key",
    "load_app_config",
]
