# string_loom/solver.py
"""
Greedy chord selection.

Starting from a pin, every iteration scores the chords to all other pins
against the remaining intensity field, commits the darkest one and erases
its pixels so they are not counted again. The two most recently visited
pins are never the next destination, which keeps the path from bouncing
back and forth along the same chord.
"""
import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field as dc_field
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple, Union

import numpy as np

from .config import MIN_PINS, START_PIN
from .errors import InvalidInput
from .raster import erase, rasterize, score

logger = logging.getLogger(__name__)

Score = Union[int, float]


@dataclass
class Chord:
    source: int
    dest: int
    xs: np.ndarray
    ys: np.ndarray
    score: Score = 0

    @property
    def coords(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.xs, self.ys


@dataclass
class SolverState:
    field: np.ndarray
    prev_pins: List[int]
    chords: List[Chord] = dc_field(default_factory=list)

    @property
    def current(self) -> int:
        return self.prev_pins[1]

    def commit(self, chord: Chord) -> None:
        erase(self.field, chord.coords)
        self.prev_pins = [self.prev_pins[1], chord.dest]
        self.chords.append(chord)


def candidate_pins(current: int, prev_pins: Iterable[int], num_pins: int) -> List[int]:
    """Next-pin candidates in increasing offset from `current`."""
    excluded = set(prev_pins)
    excluded.add(current)
    return [
        pin
        for pin in ((current + k) % num_pins for k in range(1, num_pins))
        if pin not in excluded
    ]


def evaluate_chord(field: np.ndarray, loom: np.ndarray, source: int, dest: int) -> Chord:
    xs, ys = rasterize(loom[source], loom[dest])
    return Chord(source, dest, xs, ys, score(field, (xs, ys)))


def _evaluate_chunk(field, loom, source, pins) -> List[Chord]:
    return [evaluate_chord(field, loom, source, p) for p in pins]


def _chunks(items: List[int], n: int) -> List[List[int]]:
    n = max(1, min(n, len(items)))
    size, extra = divmod(len(items), n)
    out, start = [], 0
    for i in range(n):
        end = start + size + (1 if i < extra else 0)
        out.append(items[start:end])
        start = end
    return out


def score_candidates(
    field: np.ndarray,
    loom: np.ndarray,
    current: int,
    candidates: List[int],
    executor: Optional[Executor] = None,
    num_chunks: int = 1,
) -> List[Chord]:
    """
    Score every candidate chord from `current`. Results come back in
    candidate order whatever order the workers finish in.
    """
    if executor is None or num_chunks <= 1:
        return _evaluate_chunk(field, loom, current, candidates)

    work = partial(_evaluate_chunk, field, loom, current)
    scored = []
    for chunk in executor.map(work, _chunks(candidates, num_chunks)):
        scored.extend(chunk)
    return scored


def pick_best(scored: Iterable[Chord]) -> Optional[Chord]:
    """
    First chord with the strictly highest positive score, or None when no
    chord would remove any intensity.
    """
    best = None
    best_score = 0
    for chord in scored:
        if chord.score > best_score:
            best_score = chord.score
            best = chord
    return best


def step(
    state: SolverState,
    loom: np.ndarray,
    num_pins: int,
    executor: Optional[Executor] = None,
    num_chunks: int = 1,
) -> Optional[Chord]:
    """
    Run one iteration. Returns the committed chord, or None when the best
    destination is the current pin itself and the path is finished.
    """
    current = state.current
    candidates = candidate_pins(current, state.prev_pins, num_pins)
    scored = score_candidates(state.field, loom, current, candidates, executor, num_chunks)

    best = pick_best(scored)
    if best is None:
        return None

    state.commit(best)
    return best


def _validate(field, loom, num_pins, max_chords, start_pin, workers) -> None:
    if field.ndim != 2 or field.shape[0] != field.shape[1]:
        raise InvalidInput(f"Intensity field must be square and 2-D, got shape {field.shape}")
    if num_pins < MIN_PINS:
        raise InvalidInput(f"Need at least {MIN_PINS} pins, got {num_pins}")
    if len(loom) < num_pins:
        raise InvalidInput(f"Loom has {len(loom)} positions for {num_pins} pins")
    if max_chords < 0:
        raise InvalidInput(f"max_chords must be >= 0, got {max_chords}")
    if not 0 <= start_pin < num_pins:
        raise InvalidInput(f"Start pin {start_pin} outside 0..{num_pins - 1}")
    if workers is not None and workers < 1:
        raise InvalidInput(f"workers must be >= 1, got {workers}")


def solve(
    field: np.ndarray,
    loom: np.ndarray,
    num_pins: int,
    max_chords: int,
    start_pin: int = START_PIN,
    workers: Optional[int] = None,
    on_chord: Optional[Callable[[int, Chord], None]] = None,
) -> List[Chord]:
    """
    Greedy string path over `loom`.

    `field` is consumed: committed chords are erased from it in place.
    Stops after `max_chords` chords, or earlier once no chord removes any
    intensity. `on_chord(index, chord)` is called after every commit.
    """
    _validate(field, loom, num_pins, max_chords, start_pin, workers)
    if max_chords == 0:
        return []

    if workers is None:
        workers = min(32, (os.cpu_count() or 1) + 4)
    state = SolverState(field=field, prev_pins=[start_pin, start_pin])

    with ThreadPoolExecutor(max_workers=workers) as executor:
        for i in range(max_chords):
            chord = step(state, loom, num_pins, executor, workers)
            if chord is None:
                logger.info("No chord left to draw after %d chords", i)
                break
            logger.debug("Chord %d: %d -> %d (score %s)", i, chord.source, chord.dest, chord.score)
            if on_chord is not None:
                on_chord(i, chord)

    logger.info("Solved %d chords over %d pins", len(state.chords), num_pins)
    return state.chords


def pin_sequence(chords: List[Chord], start_pin: int = START_PIN) -> List[int]:
    """The start pin followed by every destination pin."""
    return [start_pin] + [c.dest for c in chords]


def chord_endpoints(chord: Chord) -> Tuple[int, int, int, int]:
    """Pixel coordinates (x1, y1, x2, y2) of the chord's two ends."""
    return (
        int(chord.xs[0]),
        int(chord.ys[0]),
        int(chord.xs[-1]),
        int(chord.ys[-1]),
    )
