"""Configuration for auditmirror.

Values come from TOML files in the config directory, overridden by
AUDITMIRROR_* environment variables:

    from auditmirror.config import get_settings

    workers = get_settings().dispatch.workers
"""

from functools import lru_cache

from auditmirror.config.loader import load_config
from auditmirror.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process.

    Use :func:`reload_settings` after changing files or environment.
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read configuration again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
