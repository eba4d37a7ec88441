"""TOML-backed settings for classpath discovery and indexing."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import toml

from . import config

logger = logging.getLogger(__name__)

SECTION = "classpath"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "locations": [],
    "include_bootstrap": True,
    "include_environment": True,
    "workers": config.DEFAULT_MAX_WORKERS,
    "archive_extension": config.JAR_EXTENSION,
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> None:
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
        toml.dump(data, f)


def load_settings() -> Dict[str, Any]:
    """Load the ``[classpath]`` section merged over the defaults.

    Returns:
        Settings dictionary; unknown keys are kept, wrong types fall back to
        the default value.
    """
    settings = {key: (list(value) if isinstance(value, list) else value) for key, value in DEFAULT_SETTINGS.items()}
    section = load_full_config().get(SECTION, {})
    if not isinstance(section, dict):
        return settings

    for key, value in section.items():
        default = DEFAULT_SETTINGS.get(key)
        if default is not None and not isinstance(value, type(default)):
            logger.warning("Config key '%s' has wrong type %s, using default", key, type(value).__name__)
            continue
        settings[key] = value

    locations = settings["locations"]
    if not all(isinstance(location, str) for location in locations):
        logger.warning("Config key 'locations' has non-string items, dropping them")
        settings["locations"] = [location for location in locations if isinstance(location, str)]
    if settings["workers"] < 1:
        settings["workers"] = 1
    return settings


def save_locations(locations: List[str]) -> None:
    """Persist the configured extra classpath locations.

    Preserves other keys of the ``[classpath]`` section and other sections.
    """
    data = load_full_config()
    section = data.setdefault(SECTION, {})
    section["locations"] = list(dict.fromkeys(loc for loc in locations if loc))
    _save_full_config(data)


def add_location(location: str) -> List[str]:
    """Append *location* to the configured list unless already present."""
    locations = list(load_settings()["locations"])
    if location not in locations:
        locations.append(location)
    save_locations(locations)
    return locations


def reset_config() -> bool:
    """Remove the ``[classpath]`` section; returns False if nothing to reset."""
    data = load_full_config()
    if SECTION not in data:
        return False
    del data[SECTION]
    _save_full_config(data)
    return True
