"""Tests for microb.media.library module."""

import pytest

from microb.core.errors import MediaError
from microb.media.library import (
    MAX_IMAGE_BYTES,
    import_image,
    list_images,
    sanitize_filename,
    sniff_image_type,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16
GIF = b"GIF89a" + b"\x00" * 16
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8


class TestSniff:
    """Tests for image signature detection."""

    @pytest.mark.parametrize(
        "header,kind",
        [(PNG, "png"), (JPEG, "jpeg"), (GIF, "gif"), (WEBP, "webp"), (b"hello", None)],
    )
    def test_signatures(self, header, kind):
        """Test that each supported format is recognised."""
        assert sniff_image_type(header[:16]) == kind


class TestImportImage:
    """Tests for import_image."""

    def test_copies_with_sanitised_name(self, tmp_path):
        """Test that unsafe characters become underscores."""
        source = tmp_path / "my pic (1).png"
        source.write_bytes(PNG)
        images = tmp_path / "images"

        target = import_image(source, images)

        assert target == images / "my_pic__1_.png"
        assert target.read_bytes() == PNG

    def test_duplicate_names_get_suffix(self, tmp_path):
        """Test that existing names are not overwritten."""
        source = tmp_path / "photo.jpg"
        source.write_bytes(JPEG)
        images = tmp_path / "images"

        first = import_image(source, images)
        second = import_image(source, images)
        third = import_image(source, images)

        assert [p.name for p in (first, second, third)] == [
            "photo.jpg",
            "photo_1.jpg",
            "photo_2.jpg",
        ]

    def test_missing_file(self, tmp_path):
        """Test that a missing source is reported."""
        with pytest.raises(MediaError, match="File not found"):
            import_image(tmp_path / "nope.png", tmp_path / "images")

    def test_not_an_image(self, tmp_path):
        """Test that content is checked, not just the extension."""
        source = tmp_path / "fake.png"
        source.write_text("just text")

        with pytest.raises(MediaError, match="File is not an image."):
            import_image(source, tmp_path / "images")

    def test_too_large(self, tmp_path):
        """Test the size limit."""
        source = tmp_path / "big.png"
        source.write_bytes(PNG + b"\x00" * 100)

        with pytest.raises(MediaError, match="too large"):
            import_image(source, tmp_path / "images", max_bytes=50)

    def test_default_limit_is_five_mb(self):
        """Test the default size limit."""
        assert MAX_IMAGE_BYTES == 5_000_000

    def test_wrong_extension(self, tmp_path):
        """Test that only web image extensions are accepted."""
        source = tmp_path / "image.bmp"
        source.write_bytes(PNG)

        with pytest.raises(MediaError, match="only JPG, JPEG, PNG, GIF & WEBP"):
            import_image(source, tmp_path / "images")

        assert not (tmp_path / "images").exists()

    def test_sanitize(self):
        """Test the filename rule directly."""
        assert sanitize_filename("a b/c?.PNG") == "a_b_c_.PNG"


class TestListImages:
    """Tests for list_images."""

    def test_lists_only_images(self, tmp_path):
        """Test that non-image files are skipped."""
        images = tmp_path / "images"
        images.mkdir()
        (images / "a.png").write_bytes(PNG)
        (images / "readme.txt").write_text("x")

        result = list_images(images)

        assert [i.name for i in result] == ["a.png"]
        assert result[0].url == "/images/a.png"
        assert result[0].size_bytes == len(PNG)

    def test_missing_dir(self, tmp_path):
        """Test that a missing directory lists nothing."""
        assert list_images(tmp_path / "images") == []
