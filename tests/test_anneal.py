import threading

import numpy as np
import pytest

from shoreline.core import anneal
from shoreline.core.anneal import accept_move, run_annealing
from shoreline.core.connectivity import ConnectivityResult, evaluate
from shoreline.core.errors import ConfigError
from shoreline.core.grid import PATH, Grid


class FixedDraw:
    def __init__(self, value):
        self.value = value

    def random(self):
        if self.value is None:
            raise AssertionError("no draw expected")
        return self.value


def _scripted_evaluator(scores):
    it = iter(scores)

    def _evaluate(grid):
        return ConnectivityResult(next(it), np.zeros(grid.tiles.shape, dtype=bool))

    return lambda method: _evaluate


def test_improvement_always_accepted():
    for temperature in (1.0, 1e-12, 0.0):
        assert accept_move(1, temperature, FixedDraw(None))
        assert accept_move(7, temperature, FixedDraw(None))


def test_neutral_move_accepted_while_warm():
    assert accept_move(0, 1.0, FixedDraw(0.999999))
    assert accept_move(0, 1e-200, FixedDraw(0.999999))


def test_worse_move_depends_on_temperature():
    # exp(-1) ~ 0.37, exp(-0.1) ~ 0.90
    assert not accept_move(-1, 1.0, FixedDraw(0.5))
    assert accept_move(-1, 10.0, FixedDraw(0.5))
    assert not accept_move(-3, 1e-3, FixedDraw(0.0))


def test_frozen_temperature_rejects():
    assert not accept_move(0, 0.0, FixedDraw(None))
    assert not accept_move(-2, 0.0, FixedDraw(None))


def test_rejected_step_rolls_back(monkeypatch):
    tiles = np.ones((4, 4), dtype=np.uint8)
    tiles[3, 3] = PATH
    grid = Grid.from_tiles(tiles, (3, 3), protection="source_only")
    before = grid.snapshot()
    monkeypatch.setattr(anneal, "get_evaluator", _scripted_evaluator([5, 3]))

    best, stats = run_annealing(grid, steps=1, initial_temperature=1e-9, seed=0, verbose=False)
    assert np.array_equal(grid.tiles, before)
    assert stats["rejected"] == 1
    assert stats["final_score"] == 5
    assert best == 5


def test_every_improvement_accepted_and_emitted(monkeypatch):
    monkeypatch.setattr(anneal, "get_evaluator", _scripted_evaluator(range(0, 100)))
    events = []
    grid = Grid.random(5, 5, (0, 0), seed=1)
    best, stats = run_annealing(grid, steps=50, seed=1, on_improvement=events.append, verbose=False)
    assert best == 50
    assert stats["accepted"] == 50
    assert [e.attempt for e in events] == list(range(1, 51))
    assert [e.score for e in events] == list(range(1, 51))


@pytest.mark.parametrize("seed", range(5))
def test_current_score_tracks_the_grid(seed):
    grid = Grid.random(8, 8, (7, 7), seed=seed)
    best, stats = run_annealing(grid, steps=3000, seed=seed, method="recursive", verbose=False)
    assert evaluate(grid).score == stats["final_score"]
    assert best >= stats["initial_score"]
    assert best >= stats["final_score"]
    assert stats["accepted"] + stats["rejected"] == 3000
    assert grid.tiles[7, 7] == PATH


def test_improvement_events_are_consistent_snapshots():
    events = []
    grid = Grid.random(10, 10, (9, 9), seed=4)
    best, stats = run_annealing(grid, steps=5000, seed=4, method="stack", on_improvement=events.append, verbose=False)

    assert len(events) == stats["improvements"]
    scores = [e.score for e in events]
    assert scores == sorted(set(scores))
    assert [e.attempt for e in events] == list(range(1, len(events) + 1))
    if events:
        assert events[-1].score == best
        assert events[-1].tiles is not grid.tiles
    for e in events:
        check = evaluate(Grid.from_tiles(e.tiles, (9, 9)))
        assert check.score == e.score
        assert np.array_equal(check.mask, e.mask)


def test_shared_line_paths_survive():
    grid = Grid.random(9, 9, (4, 4), seed=8)
    line_paths = [(r, c) for r in range(9) for c in range(9) if (r == 4 or c == 4) and grid.tiles[r, c] == PATH]
    run_annealing(grid, steps=4000, seed=8, method="recursive", verbose=False)
    for cell in line_paths:
        assert grid.tiles[cell] == PATH


def test_seeded_runs_repeat():
    results = []
    for _ in range(2):
        grid = Grid.random(6, 6, (5, 5), seed=21)
        best, stats = run_annealing(grid, steps=2000, seed=21, method="recursive", verbose=False)
        results.append((best, stats["accepted"], grid.snapshot()))
    assert results[0][0] == results[1][0]
    assert results[0][1] == results[1][1]
    assert np.array_equal(results[0][2], results[1][2])


def test_numba_backend_runs():
    grid = Grid.random(12, 12, (11, 11), seed=0)
    best, stats = run_annealing(grid, steps=2000, seed=0, method="numba", verbose=False)
    assert evaluate(grid).score == stats["final_score"]
    assert best >= stats["initial_score"]


def test_temperature_cools_every_step():
    grid = Grid.random(4, 4, (0, 0), seed=2)
    _, stats = run_annealing(grid, steps=40, initial_temperature=2.0, cooling=0.9, seed=2, method="recursive", verbose=False)
    assert stats["final_temperature"] == pytest.approx(2.0 * 0.9 ** 40)


def test_cancel_before_start():
    cancel = threading.Event()
    cancel.set()
    grid = Grid.random(4, 4, (0, 0), seed=2)
    before = grid.snapshot()
    best, stats = run_annealing(grid, steps=100, seed=2, cancel=cancel, method="recursive", verbose=False)
    assert stats["cancelled"]
    assert stats["steps_done"] == 0
    assert best == stats["initial_score"]
    assert np.array_equal(grid.tiles, before)


def test_cancel_from_callback():
    cancel = threading.Event()
    seen = []

    def on_improvement(event):
        seen.append(event)
        cancel.set()

    tiles = np.ones((5, 5), dtype=np.uint8)
    tiles[0, 0] = PATH
    grid = Grid.from_tiles(tiles, (0, 0), protection="source_only")
    _, stats = run_annealing(grid, steps=10_000, seed=5, on_improvement=on_improvement, cancel=cancel,
                             method="recursive", verbose=False)
    assert len(seen) == 1
    assert stats["cancelled"]
    assert stats["steps_done"] == seen[0].step + 1
    assert evaluate(grid).score == stats["final_score"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"steps": -1},
        {"initial_temperature": 0.0},
        {"cooling": 0.0},
        {"cooling": 1.5},
        {"flips_per_step": 0},
        {"method": "bfs"},
    ],
)
def test_bad_parameters(kwargs):
    grid = Grid.random(3, 3, (0, 0), seed=0)
    with pytest.raises(ConfigError):
        run_annealing(grid, verbose=False, **kwargs)
