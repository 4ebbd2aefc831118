"""Image library management."""

from microb.media.library import ImageInfo, import_image, list_images, sanitize_filename

__all__ = ["ImageInfo", "import_image", "list_images", "sanitize_filename"]
