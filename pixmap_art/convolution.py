"""Boundary-aware 3x3 neighborhood reduction and the filters built on it.

Convolution never pads the image. Each pixel only sums the neighbors that
exist, so the neighbor set depends on where the pixel sits:

``INTERIOR``
    all nine offsets.
``EDGE``
    six offsets; the row or column that would fall outside is dropped.
``CORNER``
    four offsets; the quadrant that stays inside the image.

:func:`neighbor_offsets` is the single source of truth for that rule and
:func:`iter_regions` groups pixels sharing an offset set into rectangles so
every filter can evaluate whole regions at once with numpy slicing. All
filters read from the source array and write into a separate result array.
"""
from __future__ import annotations

import dataclasses
import enum
import functools
import logging
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from .algebra import _blend_arrays, saturate
from .buffer import PixelBuffer, PixelIndexError, _wrap

LOGGER = logging.getLogger("pixmap_art")

Offset = Tuple[int, int]

BOX_KERNEL: Tuple[int, ...] = (1, 1, 1, 1, 1, 1, 1, 1, 1)
SOBEL_X_KERNEL: Tuple[int, ...] = (1, 0, -1, 2, 0, -2, 0, 0, -1)
SOBEL_Y_KERNEL: Tuple[int, ...] = (1, 2, 1, 0, 0, 0, -1, -2, -1)

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class PositionClass(enum.Enum):
    """Where a pixel sits relative to the image boundary."""

    INTERIOR = "interior"
    EDGE = "edge"
    CORNER = "corner"


def _check_position(row: int, col: int, width: int, height: int) -> None:
    if not (0 <= row < height and 0 <= col < width):
        raise PixelIndexError(
            f"Pixel ({row}, {col}) outside image of {height} rows x {width} columns"
        )


def classify_position(row: int, col: int, width: int, height: int) -> PositionClass:
    """Classify ``(row, col)`` as interior, edge or corner."""

    _check_position(row, col, width, height)
    on_boundary_row = row == 0 or row == height - 1
    on_boundary_col = col == 0 or col == width - 1
    if on_boundary_row and on_boundary_col:
        return PositionClass.CORNER
    if on_boundary_row or on_boundary_col:
        return PositionClass.EDGE
    return PositionClass.INTERIOR


@functools.lru_cache(maxsize=64)
def _offsets_for(top: bool, bottom: bool, left: bool, right: bool) -> Tuple[Offset, ...]:
    row_steps = [dr for dr in (-1, 0, 1) if not (dr == -1 and top) and not (dr == 1 and bottom)]
    col_steps = [dc for dc in (-1, 0, 1) if not (dc == -1 and left) and not (dc == 1 and right)]
    return tuple((dr, dc) for dr in row_steps for dc in col_steps)


def neighbor_offsets(row: int, col: int, width: int, height: int) -> Tuple[Offset, ...]:
    """Return the in-bounds ``(dr, dc)`` offsets for the pixel at ``(row, col)``.

    Offsets are ordered row-major, matching kernel layout. An interior pixel
    gets 9, an edge pixel 6 and a corner pixel 4. Images one pixel wide or
    tall keep the same rule and only drop what falls outside.
    """
    _check_position(row, col, width, height)
    return _offsets_for(row == 0, row == height - 1, col == 0, col == width - 1)


def kernel_index(dr: int, dc: int) -> int:
    """Flattened kernel position of offset ``(dr, dc)``."""

    return (dr + 1) * 3 + (dc + 1)


@dataclasses.dataclass(frozen=True)
class NeighborhoodRegion:
    """Rectangle of pixels that share one neighbor-offset set."""

    rows: slice
    cols: slice
    position: PositionClass
    offsets: Tuple[Offset, ...]

    @property
    def neighbor_count(self) -> int:
        return len(self.offsets)


def _bands(extent: int) -> List[Tuple[slice, int]]:
    """Split ``range(extent)`` into first / middle / last bands.

    Returns ``(band, representative index)`` pairs.
    """
    if extent <= 0:
        return []
    if extent == 1:
        return [(slice(0, 1), 0)]
    bands = [(slice(0, 1), 0)]
    if extent > 2:
        bands.append((slice(1, extent - 1), 1))
    bands.append((slice(extent - 1, extent), extent - 1))
    return bands


def iter_regions(width: int, height: int) -> Iterator[NeighborhoodRegion]:
    """Yield the regions of a ``width`` x ``height`` image, each with its offsets.

    Every pixel belongs to exactly one region. Region offsets come from
    :func:`neighbor_offsets` evaluated at a representative pixel, which holds
    for the whole band because the offset rule only looks at whether a pixel
    touches each boundary.
    """
    for rows, rep_row in _bands(height):
        for cols, rep_col in _bands(width):
            yield NeighborhoodRegion(
                rows=rows,
                cols=cols,
                position=classify_position(rep_row, rep_col, width, height),
                offsets=neighbor_offsets(rep_row, rep_col, width, height),
            )


def _shift(band: slice, delta: int) -> slice:
    return slice(band.start + delta, band.stop + delta)


def _validate_kernel(kernel: Sequence[float]) -> np.ndarray:
    weights = np.asarray(kernel)
    if weights.shape != (9,):
        raise ValueError(f"Kernel must have 9 entries in row-major order, got shape {weights.shape}")
    return weights


def convolve(
    buffer: PixelBuffer, kernel: Sequence[float], *, centered: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """Weighted neighborhood sums for every pixel and channel.

    Args:
        buffer: Source image.
        kernel: Nine weights, row-major; offset ``(dr, dc)`` uses entry
            ``(dr + 1) * 3 + (dc + 1)``.
        centered: Weight each neighbor's difference from the center pixel
            instead of its raw value. Flat regions then sum to zero for any
            kernel and any neighbor subset.

    Returns:
        ``(sums, counts)`` where ``sums`` has shape ``(height, width, 3)``
        and ``counts`` has shape ``(height, width)`` holding the number of
        neighbors used for each pixel.
    """
    weights = _validate_kernel(kernel)
    dtype = np.int64 if np.issubdtype(weights.dtype, np.integer) else np.float64
    source = buffer.pixels.astype(dtype)
    sums = np.zeros(source.shape, dtype=dtype)
    counts = np.zeros(source.shape[:2], dtype=np.int64)

    for region in iter_regions(buffer.width, buffer.height):
        target = sums[region.rows, region.cols]
        for dr, dc in region.offsets:
            weight = weights[kernel_index(dr, dc)]
            if weight:
                target += weight * source[_shift(region.rows, dr), _shift(region.cols, dc)]
        if centered:
            total = sum(weights[kernel_index(dr, dc)] for dr, dc in region.offsets)
            target -= total * source[region.rows, region.cols]
        counts[region.rows, region.cols] = region.neighbor_count
    return sums, counts


def blur(buffer: PixelBuffer) -> PixelBuffer:
    """Box blur: mean of the available 3x3 neighbors, rounded half-up."""

    sums, counts = convolve(buffer, BOX_KERNEL)
    divisor = counts[..., None]
    # Integer half-up division of non-negative sums.
    averaged = (2 * sums + divisor) // np.maximum(2 * divisor, 1)
    return _wrap(saturate(averaged))


def sobel_edge(buffer: PixelBuffer) -> PixelBuffer:
    """Gradient magnitude ``sqrt(gx**2 + gy**2)`` per channel, clamped to 255.

    Gradients weight neighbor differences from the center pixel, so a flat
    color gives zero everywhere, including on partial boundary neighborhoods
    and with the x kernel whose weights do not sum to zero.
    """
    gx, _ = convolve(buffer, SOBEL_X_KERNEL, centered=True)
    gy, _ = convolve(buffer, SOBEL_Y_KERNEL, centered=True)
    magnitude = np.sqrt((gx * gx + gy * gy).astype(np.float64))
    LOGGER.debug("Sobel edge on %sx%s", buffer.width, buffer.height)
    return _wrap(saturate(np.floor(magnitude + 0.5)))


def extract_white(buffer: PixelBuffer, threshold: int) -> PixelBuffer:
    """Binary mask: white where every channel is at least ``threshold``, else black."""

    bright = np.all(buffer.pixels.astype(np.int32) >= int(threshold), axis=2)
    result = np.zeros(buffer.pixels.shape, dtype=np.uint8)
    result[bright] = WHITE
    return _wrap(result)


def glow(buffer: PixelBuffer, threshold: int) -> PixelBuffer:
    """Blend a blurred highlight mask back over the image.

    The mask is ``blur(extract_white(threshold))``. Each pixel blends toward
    its mask value with ``alpha = (R + G + B) / (6 * 255)`` of the mask, so
    even a fully white mask contributes at most half.
    """
    mask = blur(extract_white(buffer, threshold)).pixels
    alpha = mask.astype(np.float64).sum(axis=2, keepdims=True) / (6.0 * 255.0)
    LOGGER.debug("Glow threshold=%s", threshold)
    return _wrap(_blend_arrays(buffer.pixels, mask, alpha))


def _last_centers(extent: int) -> np.ndarray:
    """Odd center index whose block writes last to each interior position.

    Interior position ``r`` is covered by centers ``r - 1 .. r + 1``; the
    last one in scan order is the largest odd index not past
    ``min(r + 1, extent - 2)``.
    """
    reach = np.minimum(np.arange(1, extent - 1) + 1, extent - 2)
    return reach - (1 - reach % 2)


def mosaic(buffer: PixelBuffer) -> PixelBuffer:
    """Coarse 3x3 mosaic sampled on a stride-2 interior grid.

    Pixels at odd rows and columns strictly inside the border are averaged
    over their 3x3 neighborhood (integer truncation) and the average is
    written over that neighborhood, clipped to the interior. Later blocks
    overwrite the shared row/column of earlier ones; the border keeps the
    source pixels.
    """
    result = buffer.to_array()
    height, width = buffer.height, buffer.width
    if height < 3 or width < 3:
        return _wrap(result)

    sums, _ = convolve(buffer, BOX_KERNEL)
    averages = sums // 9
    rows, cols = _last_centers(height), _last_centers(width)
    result[1:height - 1, 1:width - 1] = averages[np.ix_(rows, cols)]
    LOGGER.debug("Mosaic on %sx%s", width, height)
    return _wrap(result)


def _block_starts(extent: int, size: int) -> Tuple[np.ndarray, np.ndarray]:
    starts = np.arange(0, extent, size)
    return starts, np.diff(np.append(starts, extent))


def bitmap(buffer: PixelBuffer, size: int) -> PixelBuffer:
    """Pixelate into ``size`` x ``size`` blocks of their truncated mean color.

    Blocks start at the top-left corner; blocks cut off by the right or
    bottom edge average only the pixels they contain.
    """
    if size < 1:
        raise ValueError(f"size must be at least 1, got {size}")
    if size == 1 or buffer.is_empty():
        return buffer.copy()
    row_starts, row_extents = _block_starts(buffer.height, size)
    col_starts, col_extents = _block_starts(buffer.width, size)
    source = buffer.pixels.astype(np.int64)
    totals = np.add.reduceat(np.add.reduceat(source, row_starts, axis=0), col_starts, axis=1)
    counts = np.outer(row_extents, col_extents)[..., None]
    means = totals // counts
    result = np.repeat(np.repeat(means, row_extents, axis=0), col_extents, axis=1)
    LOGGER.debug("Bitmap block size=%s", size)
    return _wrap(saturate(result))


__all__ = [
    "BOX_KERNEL",
    "NeighborhoodRegion",
    "PositionClass",
    "SOBEL_X_KERNEL",
    "SOBEL_Y_KERNEL",
    "bitmap",
    "blur",
    "classify_position",
    "convolve",
    "extract_white",
    "glow",
    "iter_regions",
    "kernel_index",
    "mosaic",
    "neighbor_offsets",
    "sobel_edge",
]
