"""Shared test fixtures for microb package."""

import json

import pytest
from click.testing import CliRunner

ADMIN_PASSWORD = "correct horse"


@pytest.fixture
def sample_json_file(tmp_path):
    """Create a sample JSON file for testing."""
    data = {"key": "value", "number": 42}
    file_path = tmp_path / "sample.json"
    file_path.write_text(json.dumps(data))
    return file_path


@pytest.fixture
def mock_site_root(tmp_path, monkeypatch):
    """Create a mock site structure with .microb/ directory."""
    (tmp_path / ".microb" / "backups").mkdir(parents=True)
    (tmp_path / "posts").mkdir()
    (tmp_path / "cache").mkdir()
    (tmp_path / "images").mkdir()

    monkeypatch.delenv("MICROB_SITE_ROOT", raising=False)
    monkeypatch.delenv("MICROB_ADMIN_PASSWORD", raising=False)

    # Mock get_site_root to return our tmp_path
    from microb.core import config
    # Clear the lru_cache first
    config.get_site_root.cache_clear()
    monkeypatch.setattr(config, "get_site_root", lambda: tmp_path)

    return tmp_path


@pytest.fixture
def paths(mock_site_root):
    """SitePaths for the mock site."""
    from microb.core.config import get_paths

    return get_paths(mock_site_root)


@pytest.fixture
def write_index(paths):
    """Factory fixture writing posts.json (and content files) directly."""
    def _write(slugs, with_content=True):
        posts = [
            {
                "title": slug.replace("-", " ").title(),
                "slug": slug,
                "description": f"About {slug}",
                "tags": ["test"],
                "featuredImage": "",
                "date": "2024-01-01 12:00:00",
            }
            for slug in slugs
        ]
        paths.index.write_text(json.dumps({"posts": posts}, indent=4))
        if with_content:
            for slug in slugs:
                (paths.posts / f"{slug}.html").write_text(f"<p>{slug}</p>")
        return posts

    return _write


@pytest.fixture
def store(paths):
    """A PostStore with a read cache, rooted at the mock site."""
    from microb.core.cache import ReadCache
    from microb.core.store import PostStore

    cache = ReadCache(paths.index, paths.cache_file)
    return PostStore(paths, cache=cache, lock_timeout=2.0)


@pytest.fixture
def admin_password(mock_site_root):
    """Configure an admin password for the mock site; returns the plain text."""
    from microb.admin.auth import hash_password
    from microb.core.settings import set_config_value

    # Few iterations keep the suite fast
    set_config_value("admin.password_hash", hash_password(ADMIN_PASSWORD, method="pbkdf2:sha256:1000"))
    return ADMIN_PASSWORD


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def admin_env(admin_password):
    """Environment passing the admin password to CLI commands."""
    return {"MICROB_ADMIN_PASSWORD": admin_password}
