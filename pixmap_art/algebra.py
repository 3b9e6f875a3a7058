"""Per-pixel color transforms and two-image combinators.

Every function returns a new :class:`~pixmap_art.buffer.PixelBuffer`.
Channel results are saturated into ``[0, 255]`` and fractional values are
rounded half-up.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .buffer import PixelBuffer, _wrap, ensure_same_size

LOGGER = logging.getLogger("pixmap_art")

# Integer luma weights (percent) for 0.3 R + 0.59 G + 0.11 B.
_GRAY_WEIGHTS = np.array([30, 59, 11], dtype=np.int64)


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative floats to the nearest integer, ties away from zero."""

    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def saturate(values: np.ndarray) -> np.ndarray:
    """Clamp numeric channel values into ``[0, 255]`` as uint8."""

    return np.clip(values, 0, 255).astype(np.uint8)


def _widen(buffer: PixelBuffer) -> np.ndarray:
    return buffer.pixels.astype(np.int32)


def add(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    """Channel-wise ``clamp(a + b)``."""

    ensure_same_size(first, second, "add")
    return _wrap(saturate(_widen(first) + _widen(second)))


def subtract(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    """Channel-wise ``clamp(a - b)``."""

    ensure_same_size(first, second, "subtract")
    return _wrap(saturate(_widen(first) - _widen(second)))


def multiply(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    """Channel-wise ``clamp(a * b)``.

    The product is not normalised by 255, so any pair whose product exceeds
    255 saturates to full intensity.
    """
    ensure_same_size(first, second, "multiply")
    return _wrap(saturate(_widen(first) * _widen(second)))


def difference(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    """Channel-wise ``abs(a - b)``."""

    ensure_same_size(first, second, "difference")
    return _wrap(saturate(np.abs(_widen(first) - _widen(second))))


def lightest(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    ensure_same_size(first, second, "lightest")
    return _wrap(np.maximum(first.pixels, second.pixels))


def darkest(first: PixelBuffer, second: PixelBuffer) -> PixelBuffer:
    ensure_same_size(first, second, "darkest")
    return _wrap(np.minimum(first.pixels, second.pixels))


def invert(buffer: PixelBuffer) -> PixelBuffer:
    """Channel-wise ``255 - a``."""

    return _wrap(255 - buffer.pixels)


def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace each pixel with its ``0.3 R + 0.59 G + 0.11 B`` intensity.

    The weighted sum is evaluated in integer hundredths so the half-up
    rounding is exact, which makes the transform idempotent.
    """
    weighted = buffer.pixels.astype(np.int64) @ _GRAY_WEIGHTS
    intensity = (weighted + 50) // 100
    return _wrap(np.repeat(saturate(intensity)[..., None], 3, axis=2))


def gamma_correct(buffer: PixelBuffer, gamma: float) -> PixelBuffer:
    """Apply ``round(255 * (a / 255) ** (1 / gamma))`` to every channel.

    Args:
        buffer: Source image.
        gamma: Positive gamma value; values above 1 brighten midtones.

    Returns:
        Gamma-corrected buffer.
    """
    if not gamma > 0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    normalised = buffer.pixels.astype(np.float64) / 255.0
    corrected = np.power(normalised, 1.0 / gamma) * 255.0
    LOGGER.debug("Gamma correction gamma=%s", gamma)
    return _wrap(saturate(round_half_up(corrected)))


def _blend_arrays(under: np.ndarray, over: np.ndarray, alpha: np.ndarray | float) -> np.ndarray:
    under_f = under.astype(np.float64)
    over_f = over.astype(np.float64)
    return saturate(round_half_up(over_f * alpha + under_f * (1.0 - alpha)))


def alpha_blend(buffer: PixelBuffer, other: PixelBuffer, alpha: float) -> PixelBuffer:
    """Composite ``other`` over ``buffer``: ``round(other * alpha + buffer * (1 - alpha))``.

    Args:
        buffer: Background image.
        other: Foreground image of the same size.
        alpha: Foreground opacity between 0 and 1.

    Returns:
        Blended buffer.
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be between 0.0 and 1.0, got {alpha}")
    ensure_same_size(buffer, other, "alpha_blend")
    LOGGER.debug("Alpha blend alpha=%s", alpha)
    return _wrap(_blend_arrays(buffer.pixels, other.pixels, float(alpha)))


def swirl(buffer: PixelBuffer) -> PixelBuffer:
    """Rotate channels: red takes green, green takes blue, blue takes red."""

    return _wrap(buffer.pixels[..., [1, 2, 0]])


def extract_channel(buffer: PixelBuffer, channel: int) -> PixelBuffer:
    """Keep one channel (1 = red, 2 = green, 3 = blue) and zero the others.

    An invalid channel number is reported with a warning and the pixels are
    returned unchanged.
    """
    result = buffer.to_array()
    if channel not in (1, 2, 3):
        LOGGER.warning("Invalid channel %r for extract_channel; expected 1, 2 or 3", channel)
        return _wrap(result)
    keep = channel - 1
    for index in range(3):
        if index != keep:
            result[..., index] = 0
    return _wrap(result)


def color_jitter(buffer: PixelBuffer, size: int, seed: Optional[int] = None) -> PixelBuffer:
    """Offset every channel by an independent random integer in ``[-size, size]``.

    Args:
        buffer: Source image.
        size: Maximum absolute offset per channel.
        seed: Seed for :func:`numpy.random.default_rng`; equal seeds give
            equal output.

    Returns:
        Jittered buffer with saturated channels.
    """
    if size < 0:
        raise ValueError(f"size must be non-negative, got {size}")
    if size == 0:
        return buffer.copy()
    rng = np.random.default_rng(seed)
    offsets = rng.integers(-size, size, size=buffer.pixels.shape, endpoint=True)
    LOGGER.debug("Color jitter size=%s seed=%s", size, seed)
    return _wrap(saturate(_widen(buffer) + offsets))


__all__ = [
    "add",
    "alpha_blend",
    "color_jitter",
    "darkest",
    "difference",
    "extract_channel",
    "gamma_correct",
    "grayscale",
    "invert",
    "lightest",
    "multiply",
    "round_half_up",
    "saturate",
    "subtract",
    "swirl",
]
