# string_loom/raster.py
from typing import Tuple, Union

import numpy as np

Coords = Tuple[np.ndarray, np.ndarray]  # (xs, ys) integer pixel indices


def rasterize(start, end) -> Coords:
    """
    Pixels along the segment start -> end, both given as (x, y).

    x and y are interpolated independently over round(|end - start|) samples
    (at least one) and floored. Shallow angles may repeat a pixel; only the
    sum along the line matters.
    """
    x0, y0 = float(start[0]), float(start[1])
    x1, y1 = float(end[0]), float(end[1])
    dist = max(int(round(np.hypot(x1 - x0, y1 - y0))), 1)
    xs = np.floor(np.linspace(x0, x1, dist)).astype(np.intp)
    ys = np.floor(np.linspace(y0, y1, dist)).astype(np.intp)
    return xs, ys


def _clip(field: np.ndarray, coords: Coords) -> Coords:
    h, w = field.shape
    xs, ys = coords
    return np.clip(xs, 0, w - 1), np.clip(ys, 0, h - 1)


def score(field: np.ndarray, coords: Coords) -> Union[int, float]:
    """Sum of field values along the pixels, repeated pixels counted each time."""
    xs, ys = _clip(field, coords)
    values = field[ys, xs]
    if np.issubdtype(values.dtype, np.integer):
        return int(values.sum(dtype=np.int64))
    return float(values.sum())


def erase(field: np.ndarray, coords: Coords) -> None:
    """Zero the field along the pixels, in place."""
    xs, ys = _clip(field, coords)
    field[ys, xs] = 0
