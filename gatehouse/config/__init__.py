"""Configuration loading for Gatehouse.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from gatehouse.config import get_settings

    settings = get_settings()
    base_domain = settings.dispatch.base_domain
"""

from functools import lru_cache

from gatehouse.config.loader import load_config
from gatehouse.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{GATEHOUSE_ENV}.toml (environment overrides)
    4. GATEHOUSE_* environment variables (runtime overrides)

    A missing config directory falls back to model defaults.
    Call `get_settings.cache_clear()` to reload configuration.
    """
    try:
        config_dict = load_config()
    except FileNotFoundError:
        config_dict = {}
    set_toml_config(config_dict)

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
