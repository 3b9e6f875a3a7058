"""Small buffer builders used across the test modules."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from pixmap_art import PixelBuffer

Color = Tuple[int, int, int]


def make_buffer(rows: Sequence[Sequence[Color]]) -> PixelBuffer:
    """Build a buffer from nested ``[row][col] -> (r, g, b)`` lists."""

    return PixelBuffer.from_array(np.array(rows, dtype=np.uint8).reshape(len(rows), -1, 3))


def uniform(width: int, height: int, color: Color) -> PixelBuffer:
    return PixelBuffer.filled(width, height, color)


def channel_grid(values: Sequence[Sequence[int]]) -> PixelBuffer:
    """Gray buffer where every channel of pixel ``(i, j)`` is ``values[i][j]``."""

    return make_buffer([[(v, v, v) for v in row] for row in values])
