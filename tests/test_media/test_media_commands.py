"""Tests for microb.media.commands CLI module."""

import json

from microb.media.commands import media

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class TestMediaAdd:
    """Tests for 'microb media add'."""

    def test_add(self, runner, admin_env, paths, tmp_path):
        """Test importing an image through the CLI."""
        source = tmp_path / "shot.png"
        source.write_bytes(PNG)

        result = runner.invoke(media, ["add", str(source)], env=admin_env)

        assert result.exit_code == 0
        assert "Image uploaded successfully!" in result.output
        assert (paths.images / "shot.png").exists()

    def test_rejected(self, runner, admin_env, tmp_path):
        """Test that a rejected file exits non-zero with the reason."""
        source = tmp_path / "notes.png"
        source.write_text("text")

        result = runner.invoke(media, ["add", str(source)], env=admin_env)

        assert result.exit_code == 1
        assert "File is not an image." in result.output

    def test_wrong_password(self, runner, admin_password, tmp_path):
        """Test that a bad password is refused."""
        source = tmp_path / "shot.png"
        source.write_bytes(PNG)

        result = runner.invoke(
            media, ["add", str(source)], env={"MICROB_ADMIN_PASSWORD": "wrong"}
        )

        assert result.exit_code != 0
        assert "Invalid password" in result.output


class TestMediaList:
    """Tests for 'microb media list'."""

    def test_empty(self, runner, mock_site_root):
        """Test the empty library message."""
        result = runner.invoke(media, ["list"])
        assert "No images found." in result.output

    def test_json(self, runner, paths):
        """Test machine-readable listing."""
        (paths.images / "a.png").write_bytes(PNG)

        result = runner.invoke(media, ["list", "--json"])

        data = json.loads(result.output)
        assert data[0]["name"] == "a.png"
        assert data[0]["url"] == "/images/a.png"
