"""Per-pixel RGBA similarity between two equally sized rasters."""

from __future__ import annotations

from typing import Any

import numpy as np

from ..io.models import RasterImage

_CHANNELS = 4
_MAX_PIXEL_DIFF = _CHANNELS * 255


def compare(a: RasterImage | None, b: RasterImage | None) -> float:
    """Return how similar *a* and *b* are as a percentage in ``[0, 100]``."""
    if a is None or b is None:
        return 0.0
    return compare_pixels(a.pixels, b.pixels)


def compare_pixels(data1: Any, data2: Any) -> float:
    """Return the L1 RGBA similarity of two flat pixel buffers.

    Pixels transparent in both buffers are ignored. A pixel transparent in only
    one buffer counts as a maximal mismatch. Every other pixel contributes the
    summed absolute difference of its four channels. Absent, empty, mismatched
    or ragged buffers score 0, as does a pair with no pixel left to compare.
    """
    left = _as_pixels(data1)
    right = _as_pixels(data2)
    if left is None or right is None or left.shape != right.shape:
        return 0.0

    transparent_left = left[:, 3] == 0
    transparent_right = right[:, 3] == 0
    counted = ~(transparent_left & transparent_right)
    counted_pixels = int(np.count_nonzero(counted))
    if counted_pixels == 0:
        return 0.0

    diff = np.abs(left - right).sum(axis=1)
    diff[transparent_left ^ transparent_right] = _MAX_PIXEL_DIFF
    total_diff = int(diff[counted].sum())

    similarity = 100.0 - (total_diff / (counted_pixels * _MAX_PIXEL_DIFF)) * 100.0
    return float(max(0.0, similarity))


def _as_pixels(data: Any) -> np.ndarray | None:
    if data is None:
        return None
    try:
        if isinstance(data, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(data, dtype=np.uint8)
        else:
            flat = np.asarray(data).reshape(-1)
        if flat.size == 0 or flat.size % _CHANNELS:
            return None
        # int32 so channel differences cannot wrap around.
        return flat.astype(np.int32).reshape(-1, _CHANNELS)
    except (TypeError, ValueError):
        return None
