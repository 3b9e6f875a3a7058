"""Codec boundary: decoding files into pixel buffers and encoding them back.

Pillow handles the actual file formats. Everything that crosses into the
rest of the package is an 8-bit RGB :class:`~pixmap_art.buffer.PixelBuffer`.

Key Components
--------------

ProcessingContext
    Context manager for atomic file writes with staged temporary files.

decode / encode
    Read any Pillow-supported image as RGB, write a buffer in the format
    implied by the destination suffix.

read_raw / write_raw
    Headerless row-major RGB byte files.
"""
from __future__ import annotations

import contextlib
import dataclasses
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import CHANNELS, PixelBuffer

LOGGER = logging.getLogger("pixmap_art")

PathLike = Union[str, os.PathLike]

# Extensions discovered when processing a folder (case-insensitive).
SUPPORTED_IMAGE_EXTENSIONS = frozenset(
    {".png", ".jpg", ".jpeg", ".bmp", ".tga", ".tif", ".tiff", ".ppm", ".gif", ".webp"}
)

DEFAULT_FORMAT = "PNG"


class CodecError(RuntimeError):
    """Raised when an image cannot be decoded from or encoded to disk."""


@dataclasses.dataclass
class ProcessingContext:
    """Context manager for atomic file writes using staged temporary files.

    Writes go to a hidden temporary file beside the destination, which is
    moved into place on success and removed on failure.

    Attributes:
        destination: Final output file path.
        suffix: Temporary file suffix (default: ".tmp").
    """

    destination: Path
    suffix: str = ".tmp"

    def __post_init__(self) -> None:
        self._staged_path: Optional[Path] = None

    def _temp_path(self) -> Path:
        unique = uuid.uuid4().hex
        name = f".{self.destination.name}{self.suffix}-{unique}"
        return self.destination.parent / name

    def __enter__(self) -> Path:
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        self._staged_path = self._temp_path()
        return self._staged_path

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._staged_path is None:
            return False

        staged = self._staged_path
        self._staged_path = None

        if exc_type is None:
            try:
                os.replace(staged, self.destination)
            except Exception:
                with contextlib.suppress(Exception):
                    staged.unlink()
                raise
        else:
            with contextlib.suppress(FileNotFoundError):
                staged.unlink()
        return False


def is_supported_image(path: PathLike) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS


def format_for_path(path: PathLike) -> str:
    """Pillow format name implied by ``path``'s suffix, PNG when unknown."""

    suffix = Path(path).suffix.lower()
    return Image.registered_extensions().get(suffix, DEFAULT_FORMAT)


def decode(path: PathLike, flip: bool = False) -> PixelBuffer:
    """Load ``path`` as an 8-bit RGB buffer.

    Args:
        path: Image file to read.
        flip: Reverse the row order while loading (bottom row first).

    Returns:
        Decoded buffer.

    Raises:
        CodecError: If the file is missing, unreadable or has no pixels.
    """
    source = Path(path)
    try:
        with Image.open(source) as image:
            arr = np.asarray(image.convert("RGB"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError, ValueError) as exc:
        raise CodecError(f"Unable to decode {source}: {exc}") from exc

    if arr.ndim != 3 or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise CodecError(f"Decoded image {source} has no pixels")
    if flip:
        arr = arr[::-1]
    LOGGER.debug("Decoded %s (%sx%s, flip=%s)", source, arr.shape[1], arr.shape[0], flip)
    return PixelBuffer.from_array(arr)


def encode(path: PathLike, buffer: PixelBuffer, flip: bool = False) -> None:
    """Write ``buffer`` to ``path`` atomically.

    The format follows the destination suffix (PNG when the suffix is not a
    known image extension).

    Raises:
        CodecError: If the buffer is empty or the write fails.
    """
    destination = Path(path)
    if buffer.is_empty():
        raise CodecError(f"Refusing to encode empty buffer to {destination}")
    arr = buffer.pixels
    if flip:
        arr = arr[::-1]
    image_format = format_for_path(destination)
    try:
        with ProcessingContext(destination) as staged_path:
            Image.fromarray(np.ascontiguousarray(arr)).save(staged_path, format=image_format)
    except (OSError, ValueError, KeyError) as exc:
        raise CodecError(f"Unable to encode {destination}: {exc}") from exc
    LOGGER.debug("Encoded %s as %s", destination, image_format)


def read_raw(path: PathLike, width: int, height: int) -> PixelBuffer:
    """Read a headerless row-major RGB file of ``width`` x ``height`` pixels."""

    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise CodecError(f"Unable to read {source}: {exc}") from exc
    expected = width * height * CHANNELS
    if len(data) != expected:
        raise CodecError(f"{source} holds {len(data)} bytes, expected {expected} for {width}x{height}")
    return PixelBuffer.from_bytes(width, height, data)


def write_raw(path: PathLike, buffer: PixelBuffer) -> None:
    destination = Path(path)
    try:
        with ProcessingContext(destination) as staged_path:
            staged_path.write_bytes(buffer.to_bytes())
    except OSError as exc:
        raise CodecError(f"Unable to write {destination}: {exc}") from exc


__all__ = [
    "CodecError",
    "DEFAULT_FORMAT",
    "ProcessingContext",
    "SUPPORTED_IMAGE_EXTENSIONS",
    "decode",
    "encode",
    "format_for_path",
    "is_supported_image",
    "read_raw",
    "write_raw",
]
