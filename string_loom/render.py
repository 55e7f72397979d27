# string_loom/render.py
import logging
import os
from pathlib import Path
from typing import Iterable, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import imageio.v2 as imageio  # noqa: E402
from skimage import io  # noqa: E402

from .config import BACKGROUND, THREAD_COLOR  # noqa: E402
from .solver import Chord  # noqa: E402

logger = logging.getLogger(__name__)

FRAME_PREFIX = "frame_"


def blank_canvas(length: int) -> np.ndarray:
    return np.full((length, length), BACKGROUND, dtype=np.uint8)


def draw_chord(canvas: np.ndarray, chord: Chord) -> None:
    canvas[chord.ys, chord.xs] = THREAD_COLOR


def render_threads(chords: Iterable[Chord], length: int) -> np.ndarray:
    """Light square raster with every chord's pixels set dark."""
    canvas = blank_canvas(length)
    for chord in chords:
        draw_chord(canvas, chord)
    return canvas


def save_threaded(path, canvas: np.ndarray) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    io.imsave(str(path), canvas, check_contrast=False)
    logger.info("Saved threaded image to %s", path)
    return str(path)


def save_figure(canvas: np.ndarray, fname, figsize=(8, 8), dpi=300) -> None:
    plt.figure(figsize=figsize)
    plt.imshow(canvas, cmap="gray", vmin=THREAD_COLOR, vmax=BACKGROUND)
    plt.axis("off")
    plt.tight_layout(pad=0)
    plt.savefig(fname, dpi=dpi, bbox_inches="tight", pad_inches=0)
    plt.close()


class FrameRecorder:
    """
    Solver hook that keeps a running canvas and saves a matplotlib frame
    every `snapshot_every` chords.
    """

    def __init__(self, frames_dir, length: int, snapshot_every: int, dpi: int = 150):
        self.frames_dir = Path(frames_dir)
        self.canvas = blank_canvas(length)
        self.snapshot_every = snapshot_every
        self.dpi = dpi
        self.frames: List[str] = []

    def save_frame(self, frame_idx: int) -> None:
        self.frames_dir.mkdir(parents=True, exist_ok=True)
        fname = self.frames_dir / f"{FRAME_PREFIX}{frame_idx:05d}.png"
        save_figure(self.canvas, fname, figsize=(6, 6), dpi=self.dpi)
        self.frames.append(str(fname))

    def start(self) -> None:
        self.save_frame(0)  # initial blank

    def __call__(self, index: int, chord: Chord) -> None:
        draw_chord(self.canvas, chord)
        if self.snapshot_every and (index + 1) % self.snapshot_every == 0:
            self.save_frame(index + 1)


def make_mp4_from_frames(frames_dir, mp4_path, fps: int = 30) -> bool:
    """Encode the saved frames in name order. Returns False if there were none."""
    frames = sorted(
        [
            os.path.join(frames_dir, f)
            for f in os.listdir(frames_dir)
            if f.startswith(FRAME_PREFIX) and f.lower().endswith(".png")
        ]
    )
    if not frames:
        return False

    writer = imageio.get_writer(str(mp4_path), fps=fps)
    try:
        for f in frames:
            im = imageio.imread(f)
            if im.ndim == 2:
                im = np.stack([im, im, im], axis=-1)
            if im.shape[-1] == 4:
                im = im[..., :3]
            if im.dtype != np.uint8:
                im = np.clip(im * 255, 0, 255).astype(np.uint8)
            writer.append_data(im)
    finally:
        writer.close()
    logger.info("Encoded %d frames into %s", len(frames), mp4_path)
    return True
