"""
External image tools: format conversion and metadata embedding.

Each tool probes for its executable once and caches the answer. When a
tool is missing, callers degrade gracefully instead of failing the run.
"""

import asyncio
import os
import shutil
from typing import List, Optional, Sequence, Tuple

from ..errors import AssetError, AssetErrorKind
from ..utils.log import get_logger


async def run_command(args: Sequence[str], timeout: float = 60) -> Tuple[int, str]:
    """
    Run an executable and wait for it.

    Args:
        args: Program and arguments (no shell involved)
        timeout: Seconds before the process is killed

    Returns:
        Tuple of (return code, combined output)
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    try:
        output, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise
    return process.returncode, output.decode('utf-8', errors='replace').strip()


class ExternalTool:
    """
    Base class for a command-line tool with a cached availability probe.

    Subclasses list candidate executables and the arguments that make
    them print a version.
    """

    name = "tool"
    executables: Tuple[str, ...] = ()
    version_args: Tuple[str, ...] = ("-version",)

    def __init__(self):
        self.logger = get_logger("tools")
        self._available: Optional[bool] = None
        self._lock = asyncio.Lock()
        self.executable: Optional[str] = None

    async def _probe(self) -> bool:
        for candidate in self.executables:
            path = shutil.which(candidate)
            if not path:
                continue
            try:
                code, _ = await run_command([path, *self.version_args], timeout=10)
            except (OSError, asyncio.TimeoutError):
                continue
            if code == 0:
                self.executable = path
                return True
        return False

    async def available(self) -> bool:
        """Check (once) whether the tool can be used."""
        if self._available is None:
            async with self._lock:
                if self._available is None:
                    self._available = await self._probe()
                    state = "found" if self._available else "not found"
                    self.logger.debug(f"{self.name} {state}")
        return self._available


class ImageConverter(ExternalTool):
    """Converts AVIF images to JPEG."""

    name = "ImageMagick"
    # ImageMagick 7 ships ``magick``; 6 only ``convert``
    executables = ("magick", "convert")
    version_args = ("-version",)

    async def convert(self, path: str) -> str:
        """
        Convert an image to JPEG next to the original and delete the original.

        Args:
            path: Path of the source image

        Returns:
            Path of the JPEG file

        Raises:
            AssetError: ``conversion_failed``
        """
        if not await self.available():
            raise AssetError(
                AssetErrorKind.CONVERSION_FAILED, f"{self.name} not available", {'path': path}
            )

        target = os.path.splitext(path)[0] + '.jpg'
        try:
            code, output = await run_command([self.executable, path, target])
        except (OSError, asyncio.TimeoutError) as e:
            raise AssetError(
                AssetErrorKind.CONVERSION_FAILED, f"Conversion of {path} failed: {e}", {'path': path}
            ) from e

        if code != 0 or not os.path.exists(target):
            raise AssetError(
                AssetErrorKind.CONVERSION_FAILED,
                f"Conversion of {path} failed: {output or f'exit code {code}'}",
                {'path': path},
            )

        os.remove(path)
        return target


class MetadataEmbedder(ExternalTool):
    """Writes alt text into image metadata with exiftool."""

    name = "exiftool"
    executables = ("exiftool",)
    version_args = ("-ver",)

    def build_args(self, path: str, text: str) -> List[str]:
        return [
            self.executable or "exiftool",
            "-overwrite_original",
            f"-IPTC:Caption-Abstract={text}",
            f"-IPTC:Headline={text}",
            f"-XMP:Description={text}",
            path,
        ]

    async def embed(self, path: str, text: str) -> bool:
        """
        Embed ``text`` as caption, headline and description.

        Never raises: failures are logged and reported as False.
        """
        if not text or not await self.available():
            return False
        if path.lower().endswith('.avif'):
            self.logger.debug(f"Skipping metadata for AVIF: {os.path.basename(path)}")
            return False

        try:
            code, output = await run_command(self.build_args(path, text))
        except (OSError, asyncio.TimeoutError) as e:
            self.logger.warning(f"Metadata embedding failed for {path}: {e}")
            return False

        if code != 0:
            self.logger.warning(f"Metadata embedding failed for {path}: {output}")
            return False
        return True


class UnavailableConverter(ImageConverter):
    """Converter that is never available."""

    name = "converter (disabled)"

    async def _probe(self) -> bool:
        return False


class UnavailableEmbedder(MetadataEmbedder):
    """Embedder that is never available."""

    name = "metadata embedder (disabled)"

    async def _probe(self) -> bool:
        return False
