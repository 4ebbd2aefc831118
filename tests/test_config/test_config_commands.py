"""Tests for microb.config.commands CLI module."""

from microb.admin.auth import verify_password
from microb.config.commands import config
from microb.core.settings import get_config_value


class TestConfigCommands:
    """Tests for the config command group."""

    def test_show_defaults(self, runner, mock_site_root):
        """Test the no-custom-config message."""
        result = runner.invoke(config, ["show"])
        assert "No custom configuration set" in result.output

    def test_show_all(self, runner, mock_site_root):
        """Test that --all lists every setting."""
        result = runner.invoke(config, ["show", "--all"])
        assert "cache.ttl_seconds" in result.output

    def test_set_and_get(self, runner, mock_site_root):
        """Test setting a typed value."""
        result = runner.invoke(config, ["set", "cache.ttl_seconds", "600"])

        assert result.exit_code == 0
        assert get_config_value("cache.ttl_seconds") == 600
        assert "600" in runner.invoke(config, ["get", "cache.ttl_seconds"]).output

    def test_get_default(self, runner, mock_site_root):
        """Test that unset values are marked as defaults."""
        result = runner.invoke(config, ["get", "admin.per_page"])
        assert "(default)" in result.output

    def test_set_bad_type(self, runner, mock_site_root):
        """Test that a non-integer for an int setting is rejected."""
        result = runner.invoke(config, ["set", "admin.per_page", "lots"])

        assert result.exit_code == 1
        assert "Expected int" in result.output

    def test_unknown_key(self, runner, mock_site_root):
        """Test that unknown settings are listed as errors."""
        result = runner.invoke(config, ["set", "nope", "1"])

        assert result.exit_code == 1
        assert "Unknown setting" in result.output

    def test_hash_not_settable_directly(self, runner, mock_site_root):
        """Test that the password hash is only changed through passwd."""
        result = runner.invoke(config, ["set", "admin.password_hash", "x"])
        assert result.exit_code == 1

    def test_unset(self, runner, mock_site_root):
        """Test resetting a value to its default."""
        runner.invoke(config, ["set", "admin.per_page", "10"])

        result = runner.invoke(config, ["unset", "admin.per_page"])

        assert "Reset admin.per_page" in result.output
        assert get_config_value("admin.per_page") == 25

    def test_passwd(self, runner, mock_site_root):
        """Test that passwd stores a verifiable hash, never the password."""
        result = runner.invoke(config, ["passwd"], input="s3cret\ns3cret\n")

        assert result.exit_code == 0
        stored = get_config_value("admin.password_hash")
        assert stored != "s3cret"
        assert verify_password("s3cret", stored)

    def test_hash_hidden(self, runner, admin_password):
        """Test that show never prints the hash."""
        result = runner.invoke(config, ["show", "--all"])
        assert "pbkdf2" not in result.output
