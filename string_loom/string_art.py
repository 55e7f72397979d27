# string_loom/string_art.py
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from .config import NUM_PINS, NUM_THREADS, SOLVER_WORKERS, START_PIN
from .export import chords_to_pdf, write_csv
from .loom import pin_layout
from .preprocess import load_image, preprocess
from .render import FrameRecorder, make_mp4_from_frames, render_threads, save_threaded
from .solver import Chord, solve

logger = logging.getLogger(__name__)


@dataclass
class StringArt:
    chords: List[Chord]
    loom: np.ndarray
    num_pins: int
    radius: int

    @property
    def length(self) -> int:
        return 2 * self.radius + 1

    def render(self) -> np.ndarray:
        return render_threads(self.chords, self.length)


def thread_image(img: np.ndarray,
                 num_pins: int = NUM_PINS,
                 max_chords: int = NUM_THREADS,
                 radius: Optional[int] = None,
                 workers: Optional[int] = SOLVER_WORKERS,
                 on_field: Optional[Callable[[np.ndarray], Optional[Callable]]] = None) -> StringArt:
    """
    Preprocess `img`, lay out the pins and run the greedy solver.

    `on_field(field)` may return a per-chord callback; it is called once the
    field size is known, before solving.
    """
    field = preprocess(img, radius)
    radius = (field.shape[0] - 1) // 2
    loom = pin_layout(num_pins, radius)
    on_chord = on_field(field) if on_field is not None else None

    chords = solve(field, loom, num_pins, max_chords,
                   start_pin=START_PIN, workers=workers, on_chord=on_chord)
    return StringArt(chords=chords, loom=loom, num_pins=num_pins, radius=radius)


def generate_string_art(image_path: str, out_dir: str,
                        num_pins=NUM_PINS, num_lines=NUM_THREADS, radius=None,
                        workers=SOLVER_WORKERS, snapshot_every=0, pdf=True):
    """
    Returns dict with:
      - result_png
      - lines_csv
      - instructions_pdf (if pdf)
      - timelapse_mp4 (if snapshot_every and any frame was saved)
      - pins_count
      - lines_count
    """
    out = Path(out_dir); out.mkdir(parents=True, exist_ok=True)
    OUTPUT_FILE = out / "string_art_result.png"
    LINES_CSV = out / "string_art_lines.csv"
    PDF_FILE = out / "string_art_instructions.pdf"
    FRAMES_DIR = out / "frames"
    MP4_FILE = out / "string_art_timelapse.mp4"

    recorder = None

    def start_recorder(field):
        nonlocal recorder
        if not snapshot_every:
            return None
        recorder = FrameRecorder(FRAMES_DIR, field.shape[0], snapshot_every)
        recorder.start()
        return recorder

    img = load_image(image_path)
    art = thread_image(img, num_pins, num_lines, radius, workers, on_field=start_recorder)

    out_paths = {
        "result_png": save_threaded(OUTPUT_FILE, art.render()),
        "lines_csv": write_csv(LINES_CSV, art.chords, header=True),
        "pins_count": num_pins,
        "lines_count": len(art.chords),
    }

    if pdf and art.chords:
        out_paths["instructions_pdf"] = chords_to_pdf(art.chords, PDF_FILE)

    if recorder is not None and len(art.chords) % snapshot_every:
        recorder.save_frame(len(art.chords))  # final state

    if recorder is not None and make_mp4_from_frames(FRAMES_DIR, MP4_FILE):
        out_paths["timelapse_mp4"] = str(MP4_FILE)

    return out_paths
