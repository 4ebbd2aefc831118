"""
Image library: imports image files into the site's images/ directory.

Names are sanitised and de-duplicated with a numeric suffix; only common web
image formats under 5 MB are accepted, and the file's leading bytes must match
the image signature for its format.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from microb.core.errors import MediaError
from microb.core.queries import IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5_000_000

_SIGNATURES: dict[str, tuple[bytes, ...]] = {
    "jpeg": (b"\xff\xd8\xff",),
    "png": (b"\x89PNG\r\n\x1a\n",),
    "gif": (b"GIF87a", b"GIF89a"),
}


@dataclass
class ImageInfo:
    """An image in the library."""

    path: Path
    size_bytes: int
    modified: datetime

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def url(self) -> str:
        return f"/images/{self.path.name}"


def sanitize_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", name)


def sniff_image_type(header: bytes) -> str | None:
    """Identify an image format from its first bytes."""
    for kind, signatures in _SIGNATURES.items():
        if any(header.startswith(sig) for sig in signatures):
            return kind
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return "webp"
    return None


def _unique_target(images_dir: Path, filename: str) -> Path:
    target = images_dir / filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while target.exists():
        target = images_dir / f"{stem}_{counter}{suffix}"
        counter += 1
    return target


def import_image(
    source: Path,
    images_dir: Path,
    max_bytes: int = MAX_IMAGE_BYTES,
    filename: str | None = None,
) -> Path:
    """Copy an image into the library.

    Args:
        source: File to import
        images_dir: Destination directory (created if missing)
        max_bytes: Size limit
        filename: Name to store under (defaults to the source name)

    Returns:
        Path of the stored image

    Raises:
        MediaError: If the file is not an acceptable image
    """
    source = Path(source)
    if not source.is_file():
        raise MediaError(f"File not found: {source}")

    with open(source, "rb") as f:
        header = f.read(16)
    if sniff_image_type(header) is None:
        raise MediaError("File is not an image.")

    if source.stat().st_size > max_bytes:
        raise MediaError(f"Sorry, your file is too large (max {max_bytes // 1_000_000}MB).")

    safe_name = sanitize_filename(filename or source.name)
    extension = Path(safe_name).suffix.lower().lstrip(".")
    if extension not in IMAGE_EXTENSIONS:
        raise MediaError("Sorry, only JPG, JPEG, PNG, GIF & WEBP files are allowed.")

    images_dir.mkdir(parents=True, exist_ok=True)
    target = _unique_target(images_dir, safe_name)
    try:
        shutil.copyfile(source, target)
    except OSError as e:
        raise MediaError() from e

    logger.info("Imported image %s", target.name)
    return target


def list_images(images_dir: Path) -> list[ImageInfo]:
    """Images in the library, newest first."""
    if not images_dir.is_dir():
        return []
    images = []
    for path in images_dir.iterdir():
        if path.is_file() and path.suffix.lower().lstrip(".") in IMAGE_EXTENSIONS:
            stat = path.stat()
            images.append(
                ImageInfo(
                    path=path,
                    size_bytes=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime),
                )
            )
    return sorted(images, key=lambda i: i.modified, reverse=True)
