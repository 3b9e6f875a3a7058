"""Re-indexing transforms: resize, flips, rotation and cropping."""
from __future__ import annotations

import logging

import numpy as np

from .buffer import PixelBuffer, PixelIndexError, _wrap

LOGGER = logging.getLogger("pixmap_art")


def _nearest_indices(target: int, source: int) -> np.ndarray:
    """Source index sampled by each of ``target`` output positions.

    Position ``i`` maps to ``floor(i / (target - 1) * (source - 1))``; a
    single output position maps to index 0.
    """
    if target == 1:
        return np.zeros(1, dtype=np.intp)
    positions = np.arange(target, dtype=np.int64)
    return (positions * (source - 1) // (target - 1)).astype(np.intp)


def resize(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Nearest-neighbor resize to ``width`` x ``height``.

    Args:
        buffer: Source image.
        width: Output width in pixels.
        height: Output height in pixels.

    Returns:
        New buffer of the requested size.

    Raises:
        ValueError: If a dimension is negative, or a non-empty output is
            requested from an empty source.
    """
    if width < 0 or height < 0:
        raise ValueError(f"Resize dimensions must be non-negative, got {width}x{height}")
    if width == 0 or height == 0:
        return PixelBuffer(width, height)
    if buffer.is_empty():
        raise ValueError("Cannot resize an empty buffer to a non-empty size")

    rows = _nearest_indices(height, buffer.height)
    cols = _nearest_indices(width, buffer.width)
    LOGGER.debug("Resizing %sx%s -> %sx%s", buffer.width, buffer.height, width, height)
    return _wrap(buffer.pixels[np.ix_(rows, cols)])


def flip_horizontal(buffer: PixelBuffer) -> PixelBuffer:
    """Mirror rows top-to-bottom: ``result[i, j] = source[height-1-i, j]``.

    The name follows the axis of reflection (the horizontal midline), so this
    is what many editors call a vertical flip.
    """
    return _wrap(buffer.pixels[::-1, :].copy())


def flip_vertical(buffer: PixelBuffer) -> PixelBuffer:
    """Mirror columns left-to-right: ``result[i, j] = source[i, width-1-j]``."""

    return _wrap(buffer.pixels[:, ::-1].copy())


def rotate90(buffer: PixelBuffer) -> PixelBuffer:
    """Rotate 90 degrees counter-clockwise; width and height swap."""

    return _wrap(np.rot90(buffer.pixels, k=1, axes=(0, 1)).copy())


def subimage(buffer: PixelBuffer, x: int, y: int, width: int, height: int) -> PixelBuffer:
    """Return the ``width`` x ``height`` rectangle whose top-left is column ``x``, row ``y``.

    Raises:
        PixelIndexError: If the rectangle is not entirely inside ``buffer``.
    """
    if (
        x < 0
        or y < 0
        or width < 0
        or height < 0
        or x + width > buffer.width
        or y + height > buffer.height
    ):
        raise PixelIndexError(
            f"Rectangle at ({x}, {y}) of {width}x{height} exceeds buffer "
            f"of {buffer.width}x{buffer.height}"
        )
    return _wrap(buffer.pixels[y:y + height, x:x + width].copy())


__all__ = [
    "flip_horizontal",
    "flip_vertical",
    "resize",
    "rotate90",
    "subimage",
]
