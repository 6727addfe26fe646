"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults. API keys are never read from YAML:
each provider names the environment variable that holds its key.

Usage:
    from learnbook.config.app_config import load_app_config, get_provider_config

    config = load_app_config()
    gemini = get_provider_config("gemini")
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Values shipped in .env.example files that must not count as real keys
PLACEHOLDER_KEYS = {
    "",
    "your_gemini_api_key",
    "your_groq_api_key",
    "your_youtube_api_key",
    "your_google_search_api_key",
}


@dataclass
class ProviderConfig:
    """Configuration for a single text-generation provider."""

    base_url: str
    default_model: str
    api_key_env: str | None = None
    temperature: float = 0.7
    max_tokens: int = 8192
    timeout: int = 60
    min_key_length: int = 0

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None

    def is_configured(self) -> bool:
        """True when a usable (non-placeholder) key is present."""
        return is_usable_key(self.get_api_key(), self.min_key_length)


@dataclass
class AIConfig:
    """Fallback chain settings."""

    primary: str = "gemini"
    fallback: str = "groq"
    max_retries: int = 3
    retry_base_delay: float = 1.0
    fast_max_tokens: int = 4096


@dataclass
class SearchConfig:
    """Web and video search settings."""

    api_key_env: str = "GOOGLE_SEARCH_API_KEY"
    engine_id_env: str = "GOOGLE_SEARCH_ENGINE_ID"
    youtube_api_key_env: str = "YOUTUBE_API_KEY"
    timeout: int = 15

    def get_credentials(self) -> tuple[str | None, str | None]:
        """Return (api_key, engine_id) from environment."""
        return os.environ.get(self.api_key_env), os.environ.get(self.engine_id_env)

    def get_youtube_key(self) -> str | None:
        """Return the YouTube Data API key if it is usable."""
        key = os.environ.get(self.youtube_api_key_env)
        return key if is_usable_key(key) else None


@dataclass
class GoogleOAuthConfig:
    """Google OAuth client used to refresh Calendar/Drive tokens."""

    client_id_env: str = "GOOGLE_CLIENT_ID"
    client_secret_env: str = "GOOGLE_CLIENT_SECRET"
    token_url: str = "https://oauth2.googleapis.com/token"
    timeout: int = 15

    def get_client(self) -> tuple[str | None, str | None]:
        """Return (client_id, client_secret) from environment."""
        return (
            os.environ.get(self.client_id_env),
            os.environ.get(self.client_secret_env),
        )


@dataclass
class CacheConfig:
    """Process-local lookup cache settings."""

    ttl_seconds: int = 24 * 60 * 60


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    ai: AIConfig = field(default_factory=AIConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    oauth: GoogleOAuthConfig = field(default_factory=GoogleOAuthConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def is_usable_key(key: str | None, min_length: int = 0) -> bool:
    """Check that an API key is set, not a placeholder and long enough."""
    if not key or key in PLACEHOLDER_KEYS:
        return False
    return len(key) > min_length


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "gemini": {
                "base_url": "https://generativelanguage.googleapis.com/v1beta",
                "default_model": "gemini-2.5-flash-lite",
                "api_key_env": "GEMINI_API_KEY",
                "temperature": 0.7,
                "max_tokens": 8192,
                "timeout": 60,
                "min_key_length": 10,
            },
            "groq": {
                "base_url": "https://api.groq.com/openai/v1",
                "default_model": "openai/gpt-oss-120b",
                "api_key_env": "GROQ_API_KEY",
                "temperature": 1.0,
                "max_tokens": 8192,
                "timeout": 60,
            },
        },
        "ai": {
            "primary": "gemini",
            "fallback": "groq",
            "max_retries": 3,
            "retry_base_delay": 1.0,
            "fast_max_tokens": 4096,
        },
        "search": {
            "api_key_env": "GOOGLE_SEARCH_API_KEY",
            "engine_id_env": "GOOGLE_SEARCH_ENGINE_ID",
            "youtube_api_key_env": "YOUTUBE_API_KEY",
            "timeout": 15,
        },
        "oauth": {
            "client_id_env": "GOOGLE_CLIENT_ID",
            "client_secret_env": "GOOGLE_CLIENT_SECRET",
        },
        "cache": {
            "ttl_seconds": 86400,
        },
        "paths": {
            "db_path": "db/learnbook.db",
            "config_dir": "data/config",
        },
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    providers = {}
    for name, pconfig in data.get("providers", {}).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url", ""),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
            temperature=float(pconfig.get("temperature", 0.7)),
            max_tokens=int(pconfig.get("max_tokens", 8192)),
            timeout=int(pconfig.get("timeout", 60)),
            min_key_length=int(pconfig.get("min_key_length", 0)),
        )

    ai_data = data.get("ai", {})
    ai = AIConfig(
        primary=ai_data.get("primary", "gemini"),
        fallback=ai_data.get("fallback", "groq"),
        max_retries=int(ai_data.get("max_retries", 3)),
        retry_base_delay=float(ai_data.get("retry_base_delay", 1.0)),
        fast_max_tokens=int(ai_data.get("fast_max_tokens", 4096)),
    )

    search_data = data.get("search", {})
    search = SearchConfig(
        api_key_env=search_data.get("api_key_env", "GOOGLE_SEARCH_API_KEY"),
        engine_id_env=search_data.get("engine_id_env", "GOOGLE_SEARCH_ENGINE_ID"),
        youtube_api_key_env=search_data.get("youtube_api_key_env", "YOUTUBE_API_KEY"),
        timeout=int(search_data.get("timeout", 15)),
    )

    oauth_data = data.get("oauth", {})
    oauth = GoogleOAuthConfig(
        client_id_env=oauth_data.get("client_id_env", "GOOGLE_CLIENT_ID"),
        client_secret_env=oauth_data.get("client_secret_env", "GOOGLE_CLIENT_SECRET"),
    )

    cache = CacheConfig(
        ttl_seconds=int(data.get("cache", {}).get("ttl_seconds", 86400)),
    )

    return AppConfig(
        providers=providers,
        ai=ai,
        search=search,
        oauth=oauth,
        cache=cache,
        paths=data.get("paths", {}),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, merging the YAML file over defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        file_data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.info("using_default_config")

    _cached_config = _parse_config(data)
    return _cached_config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Get configuration for a specific provider.

    Args:
        provider: Provider name ("gemini" or "groq")

    Returns:
        ProviderConfig or None if provider not found.
    """
    config = load_app_config()
    return config.providers.get(provider)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
