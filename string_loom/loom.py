# string_loom/loom.py
import numpy as np

from .config import MIN_PINS
from .errors import InvalidInput


def pin_layout(num_pins: int, radius: float) -> np.ndarray:
    """
    Pin positions on a circle of `radius` centered at (radius, radius).

    Returns an array of shape (num_pins + 1, 2) holding (x, y) per pin; the
    last row repeats pin 0 so the ring is closed.
    """
    if num_pins < MIN_PINS:
        raise InvalidInput(f"Need at least {MIN_PINS} pins, got {num_pins}")
    if radius <= 0:
        raise InvalidInput(f"Radius must be positive, got {radius}")

    angles = np.linspace(0, 2 * np.pi, num_pins + 1)
    xs = radius * (1 + np.cos(angles))
    ys = radius * (1 + np.sin(angles))
    loom = np.column_stack((xs, ys))
    loom[-1] = loom[0]
    return loom
