"""Tests for the greedy chord solver."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

import string_loom.solver as solver
from string_loom.errors import InvalidInput
from string_loom.loom import pin_layout
from string_loom.solver import (
    Chord,
    SolverState,
    _chunks,
    candidate_pins,
    chord_endpoints,
    pick_best,
    pin_sequence,
    score_candidates,
    solve,
    step,
)


def pairs(chords):
    return [(c.source, c.dest) for c in chords]


def chord(dest, value):
    empty = np.zeros(1, dtype=np.intp)
    return Chord(0, dest, empty, empty, value)


class TestCandidates:
    def test_first_iteration_skips_start(self):
        assert candidate_pins(0, [0, 0], 5) == [1, 2, 3, 4]

    def test_skips_previous_pin_and_wraps(self):
        assert candidate_pins(3, [1, 3], 5) == [4, 0, 2]

    def test_chunks_keep_order(self):
        assert _chunks(list(range(10)), 3) == [[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]]
        assert _chunks([1, 2], 8) == [[1], [2]]


class TestPickBest:
    def test_first_maximum_wins(self):
        best = pick_best([chord(1, 5), chord(2, 7), chord(3, 7), chord(4, 3)])
        assert best.dest == 2

    def test_nothing_to_remove(self):
        assert pick_best([chord(1, 0), chord(2, 0)]) is None
        assert pick_best([]) is None


class TestScoreCandidates:
    def test_parallel_matches_serial(self, random_field):
        loom = pin_layout(24, 20)
        candidates = candidate_pins(5, [0, 5], 24)
        serial = score_candidates(random_field, loom, 5, candidates)
        with ThreadPoolExecutor(max_workers=4) as executor:
            parallel = score_candidates(random_field, loom, 5, candidates, executor, 4)
        assert [(c.dest, c.score) for c in parallel] == [(c.dest, c.score) for c in serial]
        assert [c.dest for c in serial] == candidates


class TestStep:
    def test_commits_and_shifts_history(self, corner_field, square_loom):
        state = SolverState(field=corner_field, prev_pins=[0, 0])
        committed = step(state, square_loom, 4)
        assert (committed.source, committed.dest) == (0, 1)
        assert state.prev_pins == [0, 1]
        assert state.chords == [committed]
        assert corner_field[0, [0, 1, 2, 4]].sum() == 0

    def test_returns_none_on_empty_field(self, square_loom):
        state = SolverState(field=np.zeros((5, 5), dtype=np.uint8), prev_pins=[0, 0])
        assert step(state, square_loom, 4) is None
        assert state.chords == []
        assert state.prev_pins == [0, 0]


class TestSolve:
    def test_known_path(self, corner_field, square_loom):
        chords = solve(corner_field, square_loom, 4, 10, workers=1)
        assert pairs(chords) == [(0, 1), (1, 3), (3, 0)]
        assert [c.score for c in chords] == [40, 30, 20]
        assert not corner_field.any()

    def test_uniform_field_takes_the_diameter_first(self, uniform_field):
        loom = pin_layout(4, 10)
        chords = solve(uniform_field, loom, 4, 3)
        assert 1 <= len(chords) <= 3
        assert pairs(chords)[0] == (0, 2)
        assert chords[0].score == 20 * 100

    def test_zero_field_stops_after_one_iteration(self, monkeypatch):
        calls = []
        original = solver.score_candidates

        def counting(*args, **kwargs):
            calls.append(1)
            return original(*args, **kwargs)

        monkeypatch.setattr(solver, "score_candidates", counting)
        chords = solve(np.zeros((21, 21), dtype=np.uint8), pin_layout(12, 10), 12, 50)
        assert chords == []
        assert len(calls) == 1

    def test_zero_max_chords_scores_nothing(self, monkeypatch, uniform_field):
        def fail(*args, **kwargs):
            raise AssertionError("no candidate should be scored")

        monkeypatch.setattr(solver, "score_candidates", fail)
        before = uniform_field.copy()
        assert solve(uniform_field, pin_layout(4, 10), 4, 0) == []
        np.testing.assert_array_equal(uniform_field, before)

    def test_path_invariants(self, random_field):
        radius = 20
        loom = pin_layout(24, radius)
        before = random_field.copy()
        chords = solve(random_field, loom, 24, 40)

        assert len(chords) <= 40
        assert chords[0].source == 0
        for prev, nxt in zip(chords, chords[1:]):
            assert nxt.source == prev.dest
            assert (nxt.source, nxt.dest) != (prev.dest, prev.source)
        for c in chords:
            assert c.source != c.dest
            x1, y1, x2, y2 = chord_endpoints(c)
            assert (x1, y1) == tuple(np.floor(loom[c.source]).astype(int))
            assert (x2, y2) == tuple(np.floor(loom[c.dest]).astype(int))
            for pin in (c.source, c.dest):
                x, y = loom[pin]
                assert (x - radius) ** 2 + (y - radius) ** 2 <= radius ** 2 + 1e-6

        assert (random_field >= 0).all()
        assert (random_field <= before).all()

    def test_deterministic_across_worker_counts(self, random_field):
        loom = pin_layout(24, 20)
        serial = solve(random_field.copy(), loom, 24, 30, workers=1)
        parallel = solve(random_field.copy(), loom, 24, 30, workers=6)
        again = solve(random_field.copy(), loom, 24, 30, workers=6)
        assert pairs(serial) == pairs(parallel) == pairs(again)

    def test_on_chord_called_per_commit(self, corner_field, square_loom):
        seen = []
        chords = solve(corner_field, square_loom, 4, 10,
                       on_chord=lambda i, c: seen.append((i, c.dest)))
        assert seen == [(i, c.dest) for i, c in enumerate(chords)]

    @pytest.mark.parametrize("kwargs", [
        {"num_pins": 2},
        {"max_chords": -1},
        {"start_pin": 4},
        {"workers": 0},
    ])
    def test_invalid_input(self, uniform_field, kwargs):
        args = {"num_pins": 4, "max_chords": 3}
        args.update(kwargs)
        with pytest.raises(InvalidInput):
            solve(uniform_field, pin_layout(4, 10), **args)

    def test_non_square_field(self):
        with pytest.raises(InvalidInput):
            solve(np.zeros((5, 6), dtype=np.uint8), pin_layout(4, 2), 4, 1)


def test_pin_sequence(corner_field, square_loom):
    chords = solve(corner_field, square_loom, 4, 10)
    assert pin_sequence(chords) == [0, 1, 3, 0]
    assert pin_sequence([]) == [0]
