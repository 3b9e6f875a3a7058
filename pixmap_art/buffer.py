"""Owned RGB raster storage and the errors raised on invalid access.

A :class:`PixelBuffer` wraps a contiguous ``uint8`` array of shape
``(height, width, 3)``. The buffer always owns its array: constructing from
external data, copying and reassigning all take a private copy, so two
buffers never share storage.
"""
from __future__ import annotations

import logging
from typing import Iterator, NamedTuple, Optional, Sequence, Tuple

import numpy as np

LOGGER = logging.getLogger("pixmap_art")

CHANNELS = 3


class PixelIndexError(IndexError):
    """Raised when a row, column, index or rectangle falls outside a buffer."""


class DimensionMismatchError(ValueError):
    """Raised when two buffers combined per pixel differ in size."""


class Pixel(NamedTuple):
    """One RGB color with 8-bit channels."""

    r: int
    g: int
    b: int


def _as_channels(color: Sequence[int]) -> Tuple[int, int, int]:
    if len(color) != CHANNELS:
        raise ValueError(f"Pixel requires {CHANNELS} channels, got {len(color)}")
    values = tuple(int(value) for value in color)
    for value in values:
        if not 0 <= value <= 255:
            raise ValueError(f"Channel values must be between 0 and 255, got {value}")
    return values  # type: ignore[return-value]


class PixelBuffer:
    """Fixed-size, row-major RGB raster.

    Args:
        width: Number of columns.
        height: Number of rows.

    New buffers are zero-filled (black).
    """

    __slots__ = ("_pixels",)

    def __init__(self, width: int = 0, height: int = 0) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Buffer dimensions must be non-negative, got {width}x{height}")
        self._pixels = np.zeros((int(height), int(width), CHANNELS), dtype=np.uint8)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        """Build a buffer from a ``(height, width, 3)`` array, taking a private copy."""

        data = np.asarray(arr)
        if data.ndim != 3 or data.shape[2] != CHANNELS:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {data.shape}")
        if data.size and (data.min() < 0 or data.max() > 255):
            raise ValueError("Array values must be between 0 and 255")
        buffer = cls.__new__(cls)
        buffer._pixels = np.array(data, dtype=np.uint8, order="C", copy=True)
        return buffer

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes | bytearray | memoryview) -> "PixelBuffer":
        """Build a buffer from a flat row-major RGB byte sequence."""

        buffer = cls()
        buffer.assign(width, height, data)
        return buffer

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int]) -> "PixelBuffer":
        buffer = cls(width, height)
        buffer.fill(color)
        return buffer

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """``(width, height)``, matching Pillow's ordering."""

        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the backing array; use the setters to modify."""

        view = self._pixels.view()
        view.setflags(write=False)
        return view

    def __len__(self) -> int:
        return self.width * self.height

    def is_empty(self) -> bool:
        return self._pixels.size == 0

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def copy(self) -> "PixelBuffer":
        return PixelBuffer.from_array(self._pixels)

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "PixelBuffer":
        return self.copy()

    def assign(self, width: int, height: int, data: bytes | bytearray | memoryview) -> None:
        """Replace dimensions and content with a copy of flat RGB ``data``.

        ``data`` must hold exactly ``width * height * 3`` bytes. The previous
        array is dropped only after the new content validated.
        """
        if width < 0 or height < 0:
            raise ValueError(f"Buffer dimensions must be non-negative, got {width}x{height}")
        raw = np.frombuffer(bytes(data), dtype=np.uint8)
        expected = width * height * CHANNELS
        if raw.size != expected:
            raise ValueError(
                f"Pixel data holds {raw.size} bytes but {width}x{height} RGB requires {expected}"
            )
        self._pixels = raw.reshape((height, width, CHANNELS)).copy()

    def to_array(self) -> np.ndarray:
        """Return a writable copy of the pixels as ``(height, width, 3)`` uint8."""

        return self._pixels.copy()

    def to_bytes(self) -> bytes:
        """Return the flat row-major RGB representation."""

        return self._pixels.tobytes()

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------
    def _check_coordinates(self, row: int, col: int) -> None:
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise PixelIndexError(
                f"Pixel ({row}, {col}) outside buffer of {self.height} rows x {self.width} columns"
            )

    def _coordinates_for_index(self, index: int) -> Tuple[int, int]:
        if not 0 <= index < len(self):
            raise PixelIndexError(f"Pixel index {index} outside [0, {len(self)})")
        return divmod(index, self.width)

    def get(self, row: int, col: int) -> Pixel:
        self._check_coordinates(row, col)
        r, g, b = self._pixels[row, col]
        return Pixel(int(r), int(g), int(b))

    def set(self, row: int, col: int, color: Sequence[int]) -> None:
        self._check_coordinates(row, col)
        self._pixels[row, col] = _as_channels(color)

    def get_index(self, index: int) -> Pixel:
        row, col = self._coordinates_for_index(index)
        return self.get(row, col)

    def set_index(self, index: int, color: Sequence[int]) -> None:
        row, col = self._coordinates_for_index(index)
        self.set(row, col, color)

    def __iter__(self) -> Iterator[Pixel]:
        for r, g, b in self._pixels.reshape(-1, CHANNELS):
            yield Pixel(int(r), int(g), int(b))

    # ------------------------------------------------------------------
    # In-place edits
    # ------------------------------------------------------------------
    def fill(self, color: Sequence[int]) -> None:
        """Set every pixel to ``color``."""

        self._pixels[...] = _as_channels(color)

    def replace(self, source: "PixelBuffer", x: int, y: int) -> None:
        """Paste ``source`` with its top-left corner at column ``x``, row ``y``.

        Only the part of ``source`` that fits on this buffer is copied:
        ``min(height - y, source.height)`` rows and
        ``min(width - x, source.width)`` columns.
        """
        if x < 0 or y < 0:
            raise PixelIndexError(f"Paste offset ({x}, {y}) must be non-negative")
        rows = max(0, min(self.height - y, source.height))
        cols = max(0, min(self.width - x, source.width))
        LOGGER.debug("Pasting %sx%s region at (%s, %s)", cols, rows, x, y)
        if rows == 0 or cols == 0:
            return
        # Copy first so pasting a buffer onto itself reads the original pixels.
        patch = source._pixels[:rows, :cols].copy()
        self._pixels[y:y + rows, x:x + cols] = patch

    # ------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(
            np.array_equal(self._pixels, other._pixels)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


def _wrap(arr: np.ndarray) -> PixelBuffer:
    """Adopt a freshly computed array without another copy.

    Only for arrays no caller holds a reference to.
    """
    buffer = PixelBuffer.__new__(PixelBuffer)
    buffer._pixels = np.ascontiguousarray(arr, dtype=np.uint8)
    return buffer


def ensure_same_size(first: PixelBuffer, second: PixelBuffer, operation: Optional[str] = None) -> None:
    """Raise :class:`DimensionMismatchError` unless both buffers share a size."""

    if first.size != second.size:
        label = f"{operation}: " if operation else ""
        raise DimensionMismatchError(
            f"{label}buffers differ in size ({first.width}x{first.height} vs "
            f"{second.width}x{second.height})"
        )


__all__ = [
    "CHANNELS",
    "DimensionMismatchError",
    "Pixel",
    "PixelBuffer",
    "PixelIndexError",
    "ensure_same_size",
]
