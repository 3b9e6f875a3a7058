"""Pixmap art toolkit: an owned RGB raster plus deterministic image transforms.

Every transform is a pure function returning a freshly allocated
:class:`PixelBuffer`; the only in-place edits are the buffer's own setters,
``fill``, ``replace`` and ``assign``.

Module Organization
-------------------

buffer
    ``PixelBuffer`` and ``Pixel``, with bounds and dimension errors.

geometry
    Nearest-neighbor resize, row/column mirroring, quarter-turn rotation
    and rectangular crops.

algebra
    Saturating two-image combinators (add, subtract, multiply, difference,
    lightest, darkest, alpha blend) and single-image color transforms
    (invert, grayscale, gamma, swirl, channel extraction, color jitter).

convolution
    Boundary-aware 3x3 neighborhood reduction and the filters built on it:
    blur, Sobel edges, highlight glow, mosaic and block bitmap.

io_utils
    Pillow-backed decode/encode with atomic writes, plus raw RGB byte files.

pipeline
    Operation parsing and single-image processing shared with the CLI.

recipes
    Named operation chains.

cli
    Command-line interface for files and folders.

Example Usage
-------------

    from pixmap_art import decode, encode, grayscale, sobel_edge, invert

    image = decode("budapest.png")
    sketch = invert(sobel_edge(grayscale(image)))
    encode("budapest-sketch.png", sketch)
"""
from __future__ import annotations

import logging

from .algebra import (
    add,
    alpha_blend,
    color_jitter,
    darkest,
    difference,
    extract_channel,
    gamma_correct,
    grayscale,
    invert,
    lightest,
    multiply,
    subtract,
    swirl,
)
from .buffer import DimensionMismatchError, Pixel, PixelBuffer, PixelIndexError
from .cli import main, parse_args, run_pipeline
from .convolution import (
    NeighborhoodRegion,
    PositionClass,
    bitmap,
    blur,
    classify_position,
    convolve,
    extract_white,
    glow,
    iter_regions,
    mosaic,
    neighbor_offsets,
    sobel_edge,
)
from .geometry import flip_horizontal, flip_vertical, resize, rotate90, subimage
from .io_utils import CodecError, ProcessingContext, decode, encode, read_raw, write_raw
from .pipeline import (
    OPERATIONS,
    Operation,
    apply_operations,
    collect_images,
    ensure_output_path,
    parse_operation,
    process_single_image,
)
from .recipes import RECIPES, Recipe, resolve_recipe

LOGGER = logging.getLogger("pixmap_art")

__all__ = [
    "CodecError",
    "DimensionMismatchError",
    "NeighborhoodRegion",
    "OPERATIONS",
    "Operation",
    "Pixel",
    "PixelBuffer",
    "PixelIndexError",
    "PositionClass",
    "ProcessingContext",
    "RECIPES",
    "Recipe",
    "add",
    "alpha_blend",
    "apply_operations",
    "bitmap",
    "blur",
    "classify_position",
    "collect_images",
    "color_jitter",
    "convolve",
    "darkest",
    "decode",
    "difference",
    "encode",
    "ensure_output_path",
    "extract_channel",
    "extract_white",
    "flip_horizontal",
    "flip_vertical",
    "gamma_correct",
    "glow",
    "grayscale",
    "invert",
    "iter_regions",
    "lightest",
    "main",
    "mosaic",
    "multiply",
    "neighbor_offsets",
    "parse_args",
    "parse_operation",
    "process_single_image",
    "read_raw",
    "resize",
    "resolve_recipe",
    "rotate90",
    "run_pipeline",
    "sobel_edge",
    "subimage",
    "subtract",
    "swirl",
    "write_raw",
]
