"""Tests for microb.core.integrity_commands CLI module."""

import json

from microb.core.integrity_commands import integrity


class TestIntegrityCheckCommand:
    """Tests for 'microb integrity check'."""

    def test_clean(self, runner, write_index):
        """Test that a consistent site passes."""
        write_index(["a"])

        result = runner.invoke(integrity, ["check"])

        assert result.exit_code == 0
        assert "All integrity checks passed" in result.output

    def test_errors_exit_nonzero(self, runner, write_index):
        """Test that errors give exit status 1."""
        write_index(["a"], with_content=False)

        result = runner.invoke(integrity, ["check"])

        assert result.exit_code == 1
        assert "found errors" in result.output

    def test_json(self, runner, write_index, paths):
        """Test machine-readable output."""
        write_index(["a"])
        (paths.posts / "stray.html").write_text("x")

        result = runner.invoke(integrity, ["check", "--json"])

        data = json.loads(result.output)
        assert result.exit_code == 0
        assert data["fixable_count"] == 1
        assert data["issues"][0]["entry_id"] == "stray"

    def test_fix(self, runner, write_index, paths):
        """Test that --fix removes orphaned content files."""
        write_index(["a"])
        (paths.posts / "stray.html").write_text("x")

        result = runner.invoke(integrity, ["check", "--fix"])

        assert result.exit_code == 0
        assert "Fixed 1 issue" in result.output
        assert not (paths.posts / "stray.html").exists()

    def test_corrupt_index(self, runner, paths):
        """Test that an unreadable index is reported without a traceback."""
        paths.index.write_text("{")

        result = runner.invoke(integrity, ["check"])

        assert result.exit_code == 1
        assert "Refusing" in result.output
