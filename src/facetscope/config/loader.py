from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("facetscope.config.yaml")
DEFAULT_SQLITE_PATH = "facetscope.db"
DEFAULT_ITEMS_PER_PAGE = 12

KNOWN_ENTITY_TYPES = ("events", "profiles", "organizations", "projects")


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load the facetscope YAML configuration.

    Args:
        path: Optional path to the config file. Defaults to facetscope.config.yaml

    Returns:
        Dictionary with the raw configuration (empty sections allowed)

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the file does not contain a mapping
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")
    return config


def get_sqlite_path(config: Dict[str, Any] | None = None) -> str:
    """Resolve the SQLite database path, falling back to facetscope.db."""
    config = config or {}
    database = config.get("database") or {}
    if not isinstance(database, dict):
        raise ValueError("Config 'database' must be a dictionary if provided")
    return str(database.get("sqlite_path") or DEFAULT_SQLITE_PATH)


def _positive_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{label} must be a positive integer, got {value!r}")
    return value


def get_explore_settings(config: Dict[str, Any] | None = None) -> Dict[str, Dict[str, Any]]:
    """
    Normalize the explore section into per-entity settings.

    Every known entity type gets an entry with ``items_per_page`` resolved from
    the entity override, then the global ``explore.items_per_page``, then 12.
    ``default_sort`` is only present when configured; the entity's built-in
    default applies otherwise.

    Args:
        config: Raw config dict (as returned by load_config). None means defaults.

    Returns:
        Mapping of entity type to settings dict

    Raises:
        ValueError: If the explore section is malformed
    """
    config = config or {}
    explore = config.get("explore") or {}
    if not isinstance(explore, dict):
        raise ValueError("Config 'explore' must be a dictionary if provided")

    global_page_size = _positive_int(
        explore.get("items_per_page", DEFAULT_ITEMS_PER_PAGE),
        "explore.items_per_page",
    )

    entities = explore.get("entities") or {}
    if not isinstance(entities, dict):
        raise ValueError("Config 'explore.entities' must be a dictionary if provided")

    unknown = sorted(set(entities) - set(KNOWN_ENTITY_TYPES))
    if unknown:
        raise ValueError(f"Unknown entity types in explore.entities: {', '.join(unknown)}")

    settings: Dict[str, Dict[str, Any]] = {}
    for entity_type in KNOWN_ENTITY_TYPES:
        override = deepcopy(entities.get(entity_type) or {})
        if not isinstance(override, dict):
            raise ValueError(f"Config 'explore.entities.{entity_type}' must be a dictionary")
        normalized: Dict[str, Any] = {
            "items_per_page": _positive_int(
                override.get("items_per_page", global_page_size),
                f"explore.entities.{entity_type}.items_per_page",
            ),
        }
        default_sort = override.get("default_sort")
        if default_sort is not None:
            if not isinstance(default_sort, str) or not default_sort.strip():
                raise ValueError(f"explore.entities.{entity_type}.default_sort must be a non-empty string")
            normalized["default_sort"] = default_sort.strip()
        settings[entity_type] = normalized

    return settings
