"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest
from skimage import io

from string_loom.preprocess import circular_mask


def masked(field: np.ndarray) -> np.ndarray:
    radius = (field.shape[0] - 1) // 2
    field[~circular_mask(field.shape[0], radius)] = 0
    return field


@pytest.fixture
def uniform_field() -> np.ndarray:
    """radius 10, every interior cell 100."""
    return masked(np.full((21, 21), 100, dtype=np.uint8))


@pytest.fixture
def random_field() -> np.ndarray:
    rng = np.random.default_rng(0)
    return masked(rng.integers(0, 256, size=(41, 41), dtype=np.uint8))


@pytest.fixture
def square_loom() -> np.ndarray:
    """Four pins on the corners of a 5x5 field."""
    return np.array([[0, 0], [4, 0], [4, 4], [0, 4]], dtype=float)


@pytest.fixture
def corner_field() -> np.ndarray:
    """5x5 field, dark along the top row and the left column."""
    field = np.zeros((5, 5), dtype=np.uint8)
    field[0, :] = 10
    field[:, 0] = 10
    return field


@pytest.fixture
def dark_disk_png(tmp_path):
    """20x20 white image with a black square in the middle."""
    img = np.full((20, 20), 255, dtype=np.uint8)
    img[6:14, 6:14] = 0
    path = tmp_path / "disk.png"
    io.imsave(str(path), img, check_contrast=False)
    return path
