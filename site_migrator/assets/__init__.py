"""
Asset module.

Contains image extraction, naming, downloading, external tools and the
asset stage.
"""

from .downloader import ImageDownloader
from .extractor import ImageCandidate, ImageExtractor, filter_reason
from .manager import AssetManager, load_image_mapping
from .tools import (
    ImageConverter,
    MetadataEmbedder,
    UnavailableConverter,
    UnavailableEmbedder,
)

__all__ = [
    "AssetManager",
    "ImageCandidate",
    "ImageConverter",
    "ImageDownloader",
    "ImageExtractor",
    "MetadataEmbedder",
    "UnavailableConverter",
    "UnavailableEmbedder",
    "filter_reason",
    "load_image_mapping",
]
