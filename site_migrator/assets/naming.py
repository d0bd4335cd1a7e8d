"""
Local filenames and format detection for downloaded images.
"""

import os
from typing import Optional, Sequence

from ..utils.constants import ALLOWED_IMAGE_FORMATS
from ..utils.paths import image_identifier, url_extension


CONTENT_TYPE_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/pjpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
    'image/avif': '.avif',
    'image/avif-sequence': '.avif',
    'image/svg+xml': '.svg',
    'image/bmp': '.bmp',
    'image/x-icon': '.ico',
    'image/vnd.microsoft.icon': '.ico',
}

DEFAULT_EXTENSION = '.jpg'


def media_type(content_type: Optional[str]) -> str:
    """Strip parameters from a Content-Type header (``; charset=...``)."""
    return (content_type or '').split(';', 1)[0].strip().lower()


def extension_for_content_type(content_type: Optional[str]) -> Optional[str]:
    """
    Map a served image Content-Type to a file extension.

    Returns:
        Extension with dot, ``.jpg`` for unknown image types, or None when
        the response is not declared as an image
    """
    kind = media_type(content_type)
    if not kind.startswith('image/'):
        return None
    return CONTENT_TYPE_EXTENSIONS.get(kind, DEFAULT_EXTENSION)


def is_avif(url_or_name: str, content_type: Optional[str] = None) -> bool:
    """
    Decide whether an image is AVIF.

    A declared image Content-Type wins over the file extension when the
    two disagree.
    """
    served = extension_for_content_type(content_type)
    if served is not None:
        return served == '.avif'
    return os.path.splitext(url_or_name.split('?', 1)[0])[1].lower() == '.avif'


def planned_extension(
    image_url: str,
    auto_convert: bool = True,
    allowed_formats: Sequence[str] = ALLOWED_IMAGE_FORMATS
) -> str:
    """
    Extension chosen before download, from the URL alone.

    AVIF sources are planned as ``.jpg`` when conversion is enabled so the
    name already matches the converted file.
    """
    extension = url_extension(image_url)
    if not extension or extension not in allowed_formats:
        extension = DEFAULT_EXTENSION
    if extension == '.avif' and auto_convert:
        extension = '.jpg'
    return extension


def image_basename(article_slug: str, image_url: str) -> str:
    """Filename without extension: ``{article_slug}_{identifier}``."""
    return f"{article_slug}_{image_identifier(image_url)}"


def image_filename(
    article_slug: str,
    image_url: str,
    auto_convert: bool = True,
    allowed_formats: Sequence[str] = ALLOWED_IMAGE_FORMATS
) -> str:
    """
    Build the local filename for an image.

    Args:
        article_slug: Slug of the document the image belongs to
        image_url: Absolute image URL
        auto_convert: Whether AVIF images will be converted to JPEG
        allowed_formats: Extensions kept as-is

    Returns:
        e.g. ``best-trucks_hero-image.jpg``
    """
    return image_basename(article_slug, image_url) + planned_extension(
        image_url, auto_convert, allowed_formats
    )


def with_extension(filename: str, extension: str) -> str:
    return os.path.splitext(filename)[0] + extension
