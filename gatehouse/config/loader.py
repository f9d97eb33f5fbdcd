"""Locate and read Gatehouse's layered TOML configuration.

Layers, lowest precedence first:
    {config_dir}/default.toml        required
    {config_dir}/{environment}.toml  optional overlay

GATEHOUSE_* environment variables are applied on top by Settings.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "GATEHOUSE_CONFIG_DIR"
ENVIRONMENT_VAR = "GATEHOUSE_ENV"
DEFAULT_ENVIRONMENT = "development"
BASE_LAYER = "default.toml"

# Levels above the working directory searched for a config/ directory.
SEARCH_DEPTH = 5


def get_config_dir(start: Path | None = None) -> Path:
    """Resolve the directory holding the TOML layers.

    GATEHOUSE_CONFIG_DIR wins and must name an existing directory. Otherwise
    the nearest `config/` containing default.toml is used, looking in `start`
    (the working directory by default) and up to SEARCH_DEPTH parents. When
    none is found, `start/config` is returned and load_config reports it.
    """
    override = os.environ.get(CONFIG_DIR_VAR)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} is not a directory: {override}")
        return path

    origin = start or Path.cwd()
    for directory in [origin, *origin.parents][: SEARCH_DEPTH + 1]:
        candidate = directory / "config"
        if (candidate / BASE_LAYER).is_file():
            return candidate
    return origin / "config"


def get_environment() -> str:
    """Deployment environment named by GATEHOUSE_ENV ("development" if unset)."""
    return os.environ.get(ENVIRONMENT_VAR) or DEFAULT_ENVIRONMENT


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with `override` layered over `base`.

    Tables present in both are merged key by key; anything else in
    `override` replaces what `base` had. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_layers(config_dir: Path, environment: str) -> list[Path]:
    """TOML files that make up the configuration, lowest precedence first."""
    base = config_dir / BASE_LAYER
    if not base.is_file():
        raise FileNotFoundError(
            f"{BASE_LAYER} not found in {config_dir}; "
            f"set {CONFIG_DIR_VAR} to the directory that holds it"
        )

    layers = [base]
    overlay = config_dir / f"{environment}.toml"
    if overlay != base and overlay.is_file():
        layers.append(overlay)
    return layers


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Merge every configuration layer into one dict.

    Args:
        config_dir: Directory holding the layers; discovered when omitted
        environment: Overlay to apply; GATEHOUSE_ENV when omitted
    """
    directory = config_dir or get_config_dir()
    config: dict[str, Any] = {}
    for path in config_layers(directory, environment or get_environment()):
        config = deep_merge(config, load_toml(path))
    return config
