"""
Configuration and path management.

Provides site root detection and standard paths for a microb site.
Uses .microb/ directory for tool data (config, backups, lock file).

Resolution order for site root:
  1. MICROB_SITE_ROOT environment variable (highest priority)
  2. Walk up from cwd looking for .microb/ directory
  3. Global config file (~/.config/microb/config.yaml) site_root key
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

MARKER_DIR = ".microb"


@dataclass(frozen=True)
class SitePaths:
    """Standard paths for a microb site."""

    root: Path
    microb_dir: Path

    # Post store
    index: Path
    posts: Path

    # Read cache
    cache_dir: Path
    cache_file: Path

    # Media
    images: Path

    # Tool data (in .microb/)
    config_file: Path
    backups: Path
    lock_file: Path


def get_global_config_path() -> Path:
    """Return the path to the global microb config file.

    Respects XDG_CONFIG_HOME if set, otherwise defaults to
    ~/.config/microb/config.yaml.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / "microb" / "config.yaml"


def load_global_config() -> dict:
    """Load the global microb configuration.

    Returns:
        Configuration dict, or empty dict if file is missing or invalid.
    """
    config_path = get_global_config_path()
    if not config_path.is_file():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return data
        return {}
    except (OSError, yaml.YAMLError):
        return {}


def _walk_up_for_marker(start_path: Path) -> Path | None:
    """Walk up directory tree looking for a .microb/ directory."""
    current = start_path.resolve()
    while current != current.parent:
        if (current / MARKER_DIR).is_dir():
            return current
        current = current.parent
    return None


def find_site_root(start_path: Path | None = None) -> Path:
    """Find site root using 3-tier resolution.

    Args:
        start_path: Starting path for .microb/ directory walk (defaults to cwd)

    Returns:
        Path to site root

    Raises:
        FileNotFoundError: If .microb/ directory not found by any method
    """
    env_root = os.environ.get("MICROB_SITE_ROOT")
    if env_root:
        env_path = Path(env_root).resolve()
        if (env_path / MARKER_DIR).is_dir():
            return env_path
        raise FileNotFoundError(
            f"MICROB_SITE_ROOT={env_root} does not contain a {MARKER_DIR}/ directory."
        )

    if start_path is None:
        start_path = Path.cwd()
    result = _walk_up_for_marker(Path(start_path))
    if result is not None:
        return result

    site_root_str = load_global_config().get("site_root")
    if site_root_str:
        global_path = Path(site_root_str).expanduser().resolve()
        if (global_path / MARKER_DIR).is_dir():
            return global_path
        raise FileNotFoundError(
            f"Global config site_root={site_root_str} does not contain a {MARKER_DIR}/ directory."
        )

    raise FileNotFoundError(
        f"Could not find {MARKER_DIR}/ directory starting from {start_path}. "
        f"Run 'microb init' to initialize, set MICROB_SITE_ROOT, or configure "
        f"site_root in {get_global_config_path()}."
    )


@lru_cache(maxsize=1)
def get_site_root() -> Path:
    """Get the cached site root path."""
    return find_site_root()


def get_paths(site_root: Path | None = None) -> SitePaths:
    """Get all standard paths for the site.

    Args:
        site_root: Site root path (uses cached default if not provided)

    Returns:
        SitePaths dataclass with all paths
    """
    if site_root is None:
        site_root = get_site_root()

    site_root = Path(site_root)
    microb_dir = site_root / MARKER_DIR

    return SitePaths(
        root=site_root,
        microb_dir=microb_dir,
        index=site_root / "posts.json",
        posts=site_root / "posts",
        cache_dir=site_root / "cache",
        cache_file=site_root / "cache" / "posts.cache",
        images=site_root / "images",
        config_file=microb_dir / "config.yaml",
        backups=microb_dir / "backups",
        lock_file=microb_dir / "posts.lock",
    )
