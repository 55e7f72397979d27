# string_loom/preprocess.py
import logging
from typing import Optional

import numpy as np
from skimage import io, color, transform, util

from .errors import InvalidInput

logger = logging.getLogger(__name__)


def load_image(image_path: str) -> np.ndarray:
    """Decode an image file into a numpy array (H, W) or (H, W, C)."""
    return io.imread(image_path)


def resolve_radius(width: int, height: int, radius: Optional[int] = None) -> int:
    """
    Radius of the loom for a source image. Defaults to the shorter edge and
    is never larger than it.
    """
    min_edge = min(width, height)
    if min_edge <= 0:
        raise InvalidInput(f"Image has zero area ({width}x{height})")
    if radius is None:
        return min_edge
    if radius <= 0:
        raise InvalidInput(f"Radius must be positive, got {radius}")
    return min(radius, min_edge)


def square_crop(img: np.ndarray) -> np.ndarray:
    h, w = img.shape[:2]
    min_edge = min(h, w)
    top = (h - min_edge) // 2
    left = (w - min_edge) // 2
    return img[top:top + min_edge, left:left + min_edge]


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """
    Luminance-weighted grayscale as uint8 in 0..255.

    Floats above 1.0 and wide integer arrays holding 0..255 are read as
    8-bit data.
    """
    if np.issubdtype(img.dtype, np.floating):
        img = img.astype(np.float64)
        if img.max() > 1.0:
            img = img / 255.0
    elif np.issubdtype(img.dtype, np.integer) and img.dtype != np.uint8 \
            and img.min() >= 0 and img.max() <= 255:
        img = img.astype(np.uint8)

    if img.ndim == 3:
        if img.shape[2] == 4:  # RGBA
            img = color.rgba2rgb(img)
        elif img.shape[2] in (1, 2):  # gray, gray + alpha
            img = img[:, :, 0]

    if img.ndim == 3:
        gray = color.rgb2gray(img)
    elif np.issubdtype(img.dtype, np.floating):
        gray = img
    else:
        return util.img_as_ubyte(img)

    return np.round(np.clip(gray, 0.0, 1.0) * 255).astype(np.uint8)


def circular_mask(length: int, radius: int) -> np.ndarray:
    """Boolean array, True for cells within `radius` of the center."""
    yy, xx = np.ogrid[:length, :length]
    return (xx - radius) ** 2 + (yy - radius) ** 2 <= radius ** 2


def preprocess(img: np.ndarray, radius: Optional[int] = None) -> np.ndarray:
    """
    Turn an arbitrary image into the solver's intensity field:
    - center crop to a square
    - grayscale
    - nearest-neighbour resize to 2*radius + 1
    - invert, so dark areas carry the most thread
    - zero everything outside the inscribed circle
    """
    if img.ndim not in (2, 3):
        raise InvalidInput(f"Expected a 2-D or 3-D image array, got shape {img.shape}")

    h, w = img.shape[:2]
    radius = resolve_radius(w, h, radius)
    length = 2 * radius + 1

    gray = to_grayscale(square_crop(img))
    resized = transform.resize(
        gray,
        (length, length),
        order=0,
        preserve_range=True,
        anti_aliasing=False,
    ).astype(np.uint8)

    field = util.invert(resized)
    field[~circular_mask(length, radius)] = 0

    logger.debug("Preprocessed %dx%d image into %dx%d field", w, h, length, length)
    return field
