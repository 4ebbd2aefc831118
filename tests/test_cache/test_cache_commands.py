"""Tests for microb.cache.commands CLI module."""

import json

from microb.cache.commands import _format_seconds, cache


class TestCacheStatus:
    """Tests for 'microb cache status'."""

    def test_absent(self, runner, mock_site_root):
        """Test status before any read."""
        data = json.loads(runner.invoke(cache, ["status", "--json"]).output)

        assert data["state"] == "absent"
        assert data["age_seconds"] is None
        assert data["ttl_seconds"] == 86400

    def test_fresh_after_read(self, runner, write_index):
        """Test status after a read built the snapshot."""
        from microb.posts.commands import posts

        write_index(["a"])
        runner.invoke(posts, ["list"])

        data = json.loads(runner.invoke(cache, ["status", "--json"]).output)

        assert data["state"] == "fresh"

    def test_configured_ttl(self, runner, mock_site_root):
        """Test that cache.ttl_seconds is honoured."""
        from microb.core.settings import set_config_value

        set_config_value("cache.ttl_seconds", 60)

        data = json.loads(runner.invoke(cache, ["status", "--json"]).output)

        assert data["ttl_seconds"] == 60

    def test_table(self, runner, mock_site_root):
        """Test the human-readable view."""
        result = runner.invoke(cache, ["status"])
        assert "absent" in result.output

    def test_format_seconds(self):
        """Test duration formatting."""
        assert _format_seconds(5) == "5s"
        assert _format_seconds(120) == "2m"
        assert _format_seconds(86400) == "24.0h"


class TestCacheClear:
    """Tests for 'microb cache clear'."""

    def test_clear(self, runner, admin_env, write_index, paths):
        """Test that clear removes the snapshot."""
        from microb.core.site import open_cache

        write_index(["a"])
        open_cache().get()

        result = runner.invoke(cache, ["clear"], env=admin_env)

        assert result.exit_code == 0
        assert "Cache cleared successfully!" in result.output
        assert not paths.cache_file.exists()

    def test_clear_needs_password(self, runner, admin_password):
        """Test that clearing the cache is admin only."""
        result = runner.invoke(cache, ["clear"], env={"MICROB_ADMIN_PASSWORD": "nope"})
        assert result.exit_code != 0
