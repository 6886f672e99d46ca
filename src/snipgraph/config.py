"""
Configuration management for Snipgraph.

Uses XDG base directories:
- Config: ~/.config/snipgraph/config.toml
- Data: ~/snipgraph/ (snippets and the knowledge graph)
"""

from pathlib import Path
from typing import Any
import logging
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "snipgraph"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/snipgraph)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "snipgraph"


def get_snipgraph_home() -> Path:
    """Get the snipgraph data directory (~/snipgraph or SNIPGRAPH_HOME)."""
    if env_home := os.environ.get("SNIPGRAPH_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to snipgraph.db."""
    return get_snipgraph_home() / "snipgraph.db"


def ensure_dirs() -> None:
    """Ensure all required directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_snipgraph_home().mkdir(parents=True, exist_ok=True)


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Returns default config if file doesn't exist. Sections present in the
    file are merged over the defaults, so a partial file is enough.
    """
    config_path = get_config_path()
    config = get_default_config()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        return merge_config(config, tomli.load(f))


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "snipgraph": {
            "home": str(get_snipgraph_home()),
        },
        "graph": {
            "domain_top_n": 3,
            "domain_bonus": 5,
            "max_suggestions": 5,
        },
        "editor": {
            "debounce_ms": 300,
        },
        "metadata": {
            "enabled": True,
            "endpoint": "https://api.microlink.io",
            "timeout": 10.0,
        },
        "logging": {
            "level": "WARNING",
        },
    }


def configure_logging(config: dict[str, Any] | None = None) -> None:
    """Configure root logging from the [logging] section."""
    config = config or load_config()
    level_name = str(config.get("logging", {}).get("level", "WARNING")).upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, level_name, logging.WARNING),
    )
