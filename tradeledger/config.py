"""Configuration loading for TradeLedger.

Settings live in ``~/.config/tradeledger/config.toml``. Every key has a
default, so a missing file is not an error.
"""

import copy
import logging
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "ledger": {
        "db_path": "",  # Empty means tradeledger.db next to config.toml
        "user_id": "local",
        "default_session": "default",
    },
    "pricing": {
        "base_url": "https://api.binance.com",
        "cache_ttl_seconds": 30,
        "timeout_seconds": 10.0,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_config_dir() -> Path:
    return Path.home() / ".config" / "tradeledger"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def _merge(defaults: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(defaults)
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration merged over the defaults.

    Args:
        config_path: Optional explicit path. Uses the default location if
            not provided.

    Returns:
        Config dict with every section present.
    """
    path = config_path or get_config_path()
    if not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        user_config = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return copy.deepcopy(DEFAULT_CONFIG)

    return _merge(DEFAULT_CONFIG, user_config)


def create_template_config(config_path: Optional[Path] = None) -> Path:
    """Write the default configuration as a template file.

    Returns:
        Path of the written file.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        toml.dump(DEFAULT_CONFIG, f)
    return path


def get_db_path(config: dict) -> Path:
    """Resolve the SQLite ledger path from config."""
    configured = config.get("ledger", {}).get("db_path")
    if configured:
        return Path(configured).expanduser()
    return get_config_dir() / "tradeledger.db"
