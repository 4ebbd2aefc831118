"""
Builders for the store and cache of the current site, configured from
.microb/config.yaml.
"""

from __future__ import annotations

from microb.core.cache import ReadCache
from microb.core.config import SitePaths, get_paths
from microb.core.settings import get_config_value
from microb.core.store import PostStore


def open_cache(paths: SitePaths | None = None) -> ReadCache:
    paths = paths or get_paths()
    return ReadCache(
        paths.index,
        paths.cache_file,
        ttl=int(get_config_value("cache.ttl_seconds", config_path=paths.config_file)),
    )


def open_store(paths: SitePaths | None = None) -> PostStore:
    paths = paths or get_paths()
    return PostStore(
        paths,
        cache=open_cache(paths),
        placeholder=str(get_config_value("content.placeholder", config_path=paths.config_file)),
        keep_backups=int(get_config_value("backup.keep_count", config_path=paths.config_file)),
        keep_days=int(get_config_value("backup.keep_days", config_path=paths.config_file)),
    )
