"""
config_loader.py
-----------------
Singleton config loader. Reads config.yaml once and caches it.
All modules access configuration through this, never hardcoded values.
"""

import os
import yaml
from typing import Any, Dict


_CONFIG_CACHE: Dict[str, Any] = {}


def load_config(config_path: str | None = None) -> Dict[str, Any]:
    """
    Load and cache the YAML configuration file.

    Args:
        config_path: Path to config.yaml. Defaults to config/ relative to this file.

    Returns:
        Full config dictionary.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE:
        return _CONFIG_CACHE

    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "config.yaml")

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        _CONFIG_CACHE = yaml.safe_load(f)

    return _CONFIG_CACHE


def get_analysis_config() -> Dict[str, Any]:
    """Returns the analysis block (year window, top-K)."""
    return load_config()["analysis"]


def get_forecasting_config() -> Dict[str, Any]:
    """Returns the forecasting block."""
    return load_config()["forecasting"]


def get_transactions_per_year(cadence: str) -> int:
    """
    Returns the number of billed transactions per year for a cadence name.

    Raises:
        KeyError: If the cadence has no entry in the config (e.g. one_off).
    """
    table = get_forecasting_config()["transactions_per_year"]
    if cadence not in table:
        raise KeyError(
            f"No transactions_per_year entry for '{cadence}'. "
            f"Available: {list(table.keys())}"
        )
    return int(table[cadence])


def get_ingestion_config() -> Dict[str, Any]:
    """Returns the ingestion block (date format, column mapping)."""
    return load_config()["ingestion"]


def get_output_config() -> Dict[str, Any]:
    """Returns output/export settings."""
    return load_config()["output"]


def reset_config() -> None:
    """Clears cached config. Useful for testing."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = {}
