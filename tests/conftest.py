from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pixmap_art import PixelBuffer  # noqa: E402  # pylint: disable=wrong-import-position


@pytest.fixture
def gradient() -> PixelBuffer:
    """4 columns x 3 rows of distinct, asymmetric pixels."""

    arr = np.arange(4 * 3 * 3, dtype=np.uint8).reshape((3, 4, 3)) * 7
    return PixelBuffer.from_array(arr)
