"""TOML configuration files for auditmirror.

Layout of a config directory:

    config/
        default.toml        # shared base values
        production.toml     # overrides for AUDITMIRROR_ENV=production
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "AUDITMIRROR_CONFIG_DIR"
ENVIRONMENT_ENV = "AUDITMIRROR_ENV"
DEFAULT_ENVIRONMENT = "development"

# How far above the working directory to look for config/
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the configuration directory.

    ``AUDITMIRROR_CONFIG_DIR`` wins when set. Otherwise the first
    ``config/`` found at or above the working directory is used.

    Raises:
        FileNotFoundError: If AUDITMIRROR_CONFIG_DIR names a missing path
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} does not exist: {explicit}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    """Name of the active environment, from AUDITMIRROR_ENV."""
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Tables present on both sides are merged key by key; any other value
    in ``override`` replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Read ``default.toml`` and the active environment's file, merged.

    Both files are optional; missing ones contribute nothing and the
    model defaults apply.
    """
    config_dir = get_config_dir()
    config: dict[str, Any] = {}
    for name in ("default", get_environment()):
        path = config_dir / f"{name}.toml"
        if path.is_file():
            config = deep_merge(config, load_toml(path))
    return config
