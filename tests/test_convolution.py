from __future__ import annotations

import numpy as np
import pytest

from pixmap_art import (
    PixelBuffer,
    PixelIndexError,
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
from pixmap_art.convolution import BOX_KERNEL, kernel_index

from tests.documentation import documents
from tests.factories import channel_grid, uniform


@pytest.mark.parametrize(
    "row, col, expected",
    [
        (0, 0, PositionClass.CORNER),
        (0, 3, PositionClass.CORNER),
        (2, 0, PositionClass.CORNER),
        (2, 3, PositionClass.CORNER),
        (0, 1, PositionClass.EDGE),
        (1, 0, PositionClass.EDGE),
        (2, 2, PositionClass.EDGE),
        (1, 3, PositionClass.EDGE),
        (1, 1, PositionClass.INTERIOR),
        (1, 2, PositionClass.INTERIOR),
    ],
)
def test_classify_position(row, col, expected):
    assert classify_position(row, col, width=4, height=3) is expected


def test_classify_position_out_of_range_raises():
    with pytest.raises(PixelIndexError):
        classify_position(3, 0, width=4, height=3)


@documents("Each corner keeps the quadrant of offsets that stays inside the image")
@pytest.mark.parametrize(
    "row, col, expected",
    [
        (0, 0, ((0, 0), (0, 1), (1, 0), (1, 1))),
        (0, 2, ((0, -1), (0, 0), (1, -1), (1, 0))),
        (2, 0, ((-1, 0), (-1, 1), (0, 0), (0, 1))),
        (2, 2, ((-1, -1), (-1, 0), (0, -1), (0, 0))),
    ],
)
def test_corner_offsets(row, col, expected):
    assert neighbor_offsets(row, col, width=3, height=3) == expected


def test_edge_offsets_drop_outside_row_or_column():
    top = neighbor_offsets(0, 1, width=3, height=3)
    left = neighbor_offsets(1, 0, width=3, height=3)

    assert len(top) == 6
    assert all(dr >= 0 for dr, _ in top)
    assert len(left) == 6
    assert all(dc >= 0 for _, dc in left)


def test_interior_offsets_cover_full_neighborhood():
    offsets = neighbor_offsets(1, 1, width=3, height=3)

    assert len(offsets) == 9
    assert [kernel_index(dr, dc) for dr, dc in offsets] == list(range(9))


def test_single_row_image_keeps_only_in_bounds_offsets():
    assert neighbor_offsets(0, 1, width=3, height=1) == ((0, -1), (0, 0), (0, 1))
    assert neighbor_offsets(0, 0, width=1, height=1) == ((0, 0),)


@pytest.mark.parametrize("width, height", [(1, 1), (2, 2), (3, 3), (5, 4), (1, 6), (7, 2)])
def test_regions_partition_the_image(width, height):
    seen = np.zeros((height, width), dtype=int)
    for region in iter_regions(width, height):
        seen[region.rows, region.cols] += 1
        for row in range(region.rows.start, region.rows.stop):
            for col in range(region.cols.start, region.cols.stop):
                assert neighbor_offsets(row, col, width, height) == region.offsets
                assert classify_position(row, col, width, height) is region.position

    assert (seen == 1).all()


def test_convolve_reports_neighbor_counts():
    _, counts = convolve(uniform(3, 3, (1, 1, 1)), BOX_KERNEL)

    assert counts.tolist() == [[4, 6, 4], [6, 9, 6], [4, 6, 4]]


def test_convolve_rejects_wrong_kernel_size():
    with pytest.raises(ValueError):
        convolve(uniform(3, 3, (1, 1, 1)), [1, 2, 3])


@documents("Blur divides by 4 at corners, 6 on edges and 9 inside")
def test_blur_divisor_selection():
    source = channel_grid([[0, 0, 0], [0, 90, 0], [0, 0, 0]])

    # corners 90 / 4 = 22.5 -> 23, edges 90 / 6 = 15, center 90 / 9 = 10
    assert blur(source) == channel_grid([[23, 15, 23], [15, 10, 15], [23, 15, 23]])


def test_blur_averages_available_neighbors():
    source = channel_grid([[1, 2, 3], [4, 5, 6], [7, 8, 9]])

    assert blur(source) == channel_grid([[3, 4, 4], [5, 5, 6], [6, 7, 7]])


def test_blur_uniform_is_unchanged():
    source = uniform(3, 3, (100, 100, 100))

    assert blur(source) == source


def test_blur_does_not_modify_source():
    source = channel_grid([[0, 0, 0], [0, 90, 0], [0, 0, 0]])
    before = source.copy()
    blur(source)

    assert source == before


def test_sobel_uniform_is_black():
    assert sobel_edge(uniform(4, 3, (120, 30, 200))) == uniform(4, 3, (0, 0, 0))


def test_sobel_vertical_step():
    source = channel_grid([[0, 0, 10], [0, 0, 10], [0, 0, 10]])

    result = sobel_edge(source)

    # interior: gx = -(1 + 2 + 1) * 10, gy = 0
    assert result.get(1, 1) == (40, 40, 40)
    # top edge: gx = -30, gy = -10 -> sqrt(1000) = 31.6
    assert result.get(0, 1) == (32, 32, 32)
    # right edge: neighbors to the left are 10 darker
    assert result.get(1, 2) == (30, 30, 30)
    # left edge sees no change
    assert result.get(1, 0) == (0, 0, 0)


def test_sobel_clamps_to_white():
    source = channel_grid([[0, 0, 255], [0, 0, 255], [0, 0, 255]])

    assert sobel_edge(source).get(1, 1) == (255, 255, 255)


def test_extract_white_requires_every_channel():
    source = PixelBuffer.from_array(
        np.array([[[200, 200, 200], [200, 199, 255]], [[255, 255, 255], [0, 0, 0]]], dtype=np.uint8)
    )

    mask = extract_white(source, 200)

    assert mask.get(0, 0) == (255, 255, 255)
    assert mask.get(0, 1) == (0, 0, 0)
    assert mask.get(1, 0) == (255, 255, 255)
    assert mask.get(1, 1) == (0, 0, 0)


@documents("Glow alpha is (R + G + B) / (6 * 255), so a white mask blends at most halfway")
def test_glow_blends_toward_blurred_mask():
    source = channel_grid([[0, 0, 0], [0, 255, 0], [0, 0, 0]])

    result = glow(source, 200)

    # mask: corners 64, edges 43, center 28; alpha = mask / 510
    assert result.get(0, 0) == (8, 8, 8)
    assert result.get(0, 1) == (4, 4, 4)
    assert result.get(1, 1) == (243, 243, 243)


def test_glow_without_highlights_is_identity(gradient):
    assert glow(gradient, 256) == gradient


def test_glow_on_white_stays_white():
    white = uniform(3, 3, (255, 255, 255))

    assert glow(white, 200) == white


def test_mosaic_uniform_is_unchanged():
    source = uniform(6, 5, (40, 80, 120))

    assert mosaic(source) == source


def test_mosaic_stride_two_blocks_overwrite_earlier_ones():
    source = channel_grid([[i * 5 + j for j in range(5)] for i in range(5)])

    assert mosaic(source) == channel_grid(
        [
            [0, 1, 2, 3, 4],
            [5, 6, 8, 8, 9],
            [10, 16, 18, 18, 14],
            [15, 16, 18, 18, 19],
            [20, 21, 22, 23, 24],
        ]
    )


@documents("Mosaic averages truncate rather than round")
def test_mosaic_truncates_average():
    source = channel_grid([[0, 0, 0], [0, 17, 0], [0, 0, 0]])

    assert mosaic(source) == channel_grid([[0, 0, 0], [0, 1, 0], [0, 0, 0]])


@documents("With an even interior the last block starts at height - 3 and covers row height - 2")
def test_mosaic_even_interior():
    source = channel_grid([[i * 6 + j for j in range(6)] for i in range(6)])

    assert mosaic(source) == channel_grid(
        [
            [0, 1, 2, 3, 4, 5],
            [6, 7, 9, 9, 9, 11],
            [12, 19, 21, 21, 21, 17],
            [18, 19, 21, 21, 21, 23],
            [24, 19, 21, 21, 21, 29],
            [30, 31, 32, 33, 34, 35],
        ]
    )


def test_mosaic_mixed_parity():
    # 6 columns (even interior) by 5 rows (odd interior)
    source = channel_grid([[i * 6 + j for j in range(6)] for i in range(5)])

    assert mosaic(source) == channel_grid(
        [
            [0, 1, 2, 3, 4, 5],
            [6, 7, 9, 9, 9, 11],
            [12, 19, 21, 21, 21, 17],
            [18, 19, 21, 21, 21, 23],
            [24, 25, 26, 27, 28, 29],
        ]
    )


def test_mosaic_small_images_are_copied():
    tiny = channel_grid([[1, 2], [3, 4]])

    assert mosaic(tiny) == tiny


def test_bitmap_blocks_with_partial_edges():
    source = channel_grid([[1, 2, 3], [4, 5, 6], [7, 8, 9]])

    assert bitmap(source, 2) == channel_grid([[3, 3, 4], [3, 3, 4], [7, 7, 9]])


def test_bitmap_non_square_blocks(gradient):
    result = bitmap(gradient, 3)

    # left block: columns 0-2 of all three rows; right block: column 3
    left = gradient.pixels[:, :3].reshape(-1, 3).astype(int).sum(axis=0) // 9
    right = gradient.pixels[:, 3].astype(int).sum(axis=0) // 3
    assert result.get(2, 1) == tuple(left)
    assert result.get(0, 3) == tuple(right)


def test_bitmap_size_one_is_identity(gradient):
    assert bitmap(gradient, 1) == gradient


def test_bitmap_rejects_non_positive_size(gradient):
    with pytest.raises(ValueError):
        bitmap(gradient, 0)
