"""
Site settings stored in .microb/config.yaml.

Values are read with dotted keys (``cache.ttl_seconds``) and fall back to the
defaults in CONFIG_SCHEMA.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from microb.core.backup import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS
from microb.core.config import get_paths

DEFAULT_CACHE_TTL = 86400
DEFAULT_PER_PAGE = 25
DEFAULT_PLACEHOLDER = "<p>Post content not available.</p>"

CONFIG_SCHEMA: dict[str, dict[str, Any]] = {
    "cache.ttl_seconds": {
        "default": DEFAULT_CACHE_TTL,
        "type": int,
        "description": "Seconds before the read cache snapshot is rebuilt",
    },
    "backup.keep_days": {
        "default": DEFAULT_KEEP_DAYS,
        "type": int,
        "description": "Maximum age of index backups in days",
    },
    "backup.keep_count": {
        "default": DEFAULT_KEEP_COUNT,
        "type": int,
        "description": "Minimum number of index backups to keep",
    },
    "admin.password_hash": {
        "default": None,
        "type": str,
        "description": "Hashed admin password (set with 'microb config passwd')",
    },
    "admin.per_page": {
        "default": DEFAULT_PER_PAGE,
        "type": int,
        "description": "Posts per page in listings",
    },
    "content.placeholder": {
        "default": DEFAULT_PLACEHOLDER,
        "type": str,
        "description": "Markup returned when a content file is missing",
    },
    "site.title": {
        "default": "MicroB CMS - Responsive Blog System",
        "type": str,
        "description": "Site title",
    },
    "site.description": {
        "default": "A minimal responsive blog system built with modern web technologies.",
        "type": str,
        "description": "Site description",
    },
}


def get_config_path() -> Path:
    """Get path to config file."""
    return get_paths().config_file


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from file (supports YAML and JSON)."""
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return {}

    content = config_path.read_text(encoding="utf-8")
    if not content.strip():
        return {}

    if content.strip().startswith("{"):
        result: dict[str, Any] = json.loads(content)
        return result
    loaded = yaml.safe_load(content)
    if isinstance(loaded, dict):
        return loaded
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to file (YAML format)."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        yaml.dump(config, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )


def _schema_default(key: str) -> Any:
    schema = CONFIG_SCHEMA.get(key)
    return schema["default"] if schema else None


def get_config_value(key: str, default: Any = None, config_path: Path | None = None) -> Any:
    """Get a configuration value by dotted key.

    Falls back to ``default``, then to the schema default.
    """
    if default is None:
        default = _schema_default(key)
    current: Any = load_config(config_path)
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default
    return current


def set_config_value(key: str, value: Any) -> None:
    """Set a configuration value by dotted key."""
    config = load_config()
    parts = key.split(".")

    current = config
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value
    save_config(config)


def unset_config_value(key: str) -> bool:
    """Remove a configuration value. Returns True if it was set."""
    config = load_config()
    parts = key.split(".")
    current = config
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            return False
        current = current[part]
    if parts[-1] not in current:
        return False
    del current[parts[-1]]
    save_config(config)
    return True


def coerce_config_value(key: str, raw: str) -> Any:
    """Convert a CLI string to the type declared for ``key``.

    Raises:
        ValueError: If the key is unknown or the value does not convert
    """
    if key not in CONFIG_SCHEMA:
        raise ValueError(f"Unknown setting: {key}")
    value_type = CONFIG_SCHEMA[key]["type"]
    if value_type is int:
        return int(raw)
    return raw
