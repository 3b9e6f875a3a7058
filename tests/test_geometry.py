from __future__ import annotations

import numpy as np
import pytest

from pixmap_art import (
    PixelBuffer,
    PixelIndexError,
    flip_horizontal,
    flip_vertical,
    resize,
    rotate90,
    subimage,
)

from tests.documentation import documents
from tests.factories import channel_grid


def test_flip_horizontal_mirrors_rows(gradient):
    flipped = flip_horizontal(gradient)

    for i in range(gradient.height):
        for j in range(gradient.width):
            assert flipped.get(i, j) == gradient.get(gradient.height - 1 - i, j)


@documents("flip_vertical mirrors columns even though many editors call that a horizontal flip")
def test_flip_vertical_mirrors_columns(gradient):
    flipped = flip_vertical(gradient)

    for i in range(gradient.height):
        for j in range(gradient.width):
            assert flipped.get(i, j) == gradient.get(i, gradient.width - 1 - j)


def test_flips_do_not_modify_source(gradient):
    before = gradient.copy()
    flip_horizontal(gradient)
    flip_vertical(gradient)
    rotate90(gradient)

    assert gradient == before


def test_rotate90_is_counter_clockwise(gradient):
    rotated = rotate90(gradient)

    assert rotated.size == (gradient.height, gradient.width)
    for i in range(rotated.height):
        for j in range(rotated.width):
            assert rotated.get(i, j) == gradient.get(j, gradient.width - 1 - i)


def test_rotate90_small_example():
    source = channel_grid([[1, 2], [3, 4]])

    rotated = rotate90(source)

    assert rotated == channel_grid([[2, 4], [1, 3]])


def test_resize_identity_keeps_pixels(gradient):
    assert resize(gradient, gradient.width, gradient.height) == gradient


def test_resize_nearest_neighbor_mapping():
    source = channel_grid([[10, 20, 30], [40, 50, 60], [70, 80, 90]])

    result = resize(source, 5, 2)

    # rows: floor(i/1 * 2) -> 0, 2; cols: floor(j/4 * 2) -> 0, 0, 1, 1, 2
    assert result == channel_grid([[10, 10, 20, 20, 30], [70, 70, 80, 80, 90]])


@documents("A single output row or column samples the first source row or column")
def test_resize_to_single_row_and_column_uses_origin():
    source = channel_grid([[10, 20], [30, 40]])

    assert resize(source, 1, 1) == channel_grid([[10]])
    assert resize(source, 3, 1) == channel_grid([[10, 10, 20]])
    assert resize(source, 1, 3) == channel_grid([[10], [10], [30]])


def test_resize_to_zero_gives_empty_buffer(gradient):
    assert resize(gradient, 0, 5).is_empty()


def test_resize_empty_source_raises():
    with pytest.raises(ValueError):
        resize(PixelBuffer(0, 0), 2, 2)


def test_resize_negative_raises(gradient):
    with pytest.raises(ValueError):
        resize(gradient, -1, 2)


def test_subimage_matches_direct_reads():
    arr = np.arange(4 * 4 * 3, dtype=np.uint8).reshape((4, 4, 3))
    source = PixelBuffer.from_array(arr)

    sub = subimage(source, 1, 1, 2, 2)

    assert sub.size == (2, 2)
    assert sub.get(0, 0) == source.get(1, 1)
    assert sub.get(0, 1) == source.get(1, 2)
    assert sub.get(1, 0) == source.get(2, 1)
    assert sub.get(1, 1) == source.get(2, 2)


def test_subimage_x_is_column_and_y_is_row(gradient):
    sub = subimage(gradient, 2, 1, 2, 1)

    assert sub.size == (2, 1)
    assert sub.get(0, 0) == gradient.get(1, 2)
    assert sub.get(0, 1) == gradient.get(1, 3)


@pytest.mark.parametrize(
    "x, y, width, height",
    [(-1, 0, 1, 1), (0, -1, 1, 1), (3, 0, 2, 1), (0, 2, 1, 2), (0, 0, 5, 1), (0, 0, -1, 1)],
)
def test_subimage_out_of_range_raises(gradient, x, y, width, height):
    with pytest.raises(PixelIndexError):
        subimage(gradient, x, y, width, height)


def test_subimage_result_is_independent(gradient):
    sub = subimage(gradient, 0, 0, 2, 2)
    sub.set(0, 0, (255, 255, 255))

    assert gradient.get(0, 0) == (0, 7, 14)
