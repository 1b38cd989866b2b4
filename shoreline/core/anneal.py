from __future__ import annotations
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from tqdm import trange

from .connectivity import get_evaluator
from .errors import ConfigError
from .grid import Grid


@dataclass
class Improvement:
    tiles: np.ndarray
    score: int
    mask: np.ndarray
    attempt: int
    step: int


ImprovementCallback = Optional[Callable[[Improvement], None]]


@dataclass
class SearchState:
    current_score: int
    best_score: int
    temperature: float
    attempt: int = 0
    accepted: int = 0
    rejected: int = 0
    steps_done: int = 0


def accept_move(delta: int, temperature: float, rng: np.random.Generator) -> bool:
    """
    Metropolis rule for a maximisation: strict improvements always pass;
    otherwise pass when exp(delta / T) beats a uniform draw in [0, 1).
    """
    if delta > 0:
        return True
    if temperature <= 0.0:
        # T has underflowed; exp(delta / T) is 0 or undefined
        return False
    return math.exp(delta / temperature) > rng.random()


def _check_params(steps: int, initial_temperature: float, cooling: float, flips_per_step: int):
    if steps < 0:
        raise ConfigError(f"steps must be >= 0, got {steps}")
    if not initial_temperature > 0:
        raise ConfigError(f"initial_temperature must be > 0, got {initial_temperature}")
    if not 0 < cooling <= 1:
        raise ConfigError(f"cooling must be in (0, 1], got {cooling}")
    if flips_per_step < 1:
        raise ConfigError(f"flips_per_step must be >= 1, got {flips_per_step}")


def run_annealing(
    grid: Grid,
    *,
    steps: int = 1_000_000,
    initial_temperature: float = 1.0,
    cooling: float = 0.95,
    flips_per_step: int = 2,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    method: str = "numba",
    on_improvement: ImprovementCallback = None,
    cancel=None,
    verbose: bool = True,
) -> Tuple[int, Dict]:
    """
    Anneal `grid` in place towards a higher connectivity score.

    Each step flips `flips_per_step` random cells, rescores, then keeps or rolls
    back the change and cools the temperature. Every new best score is handed
    to `on_improvement` as an `Improvement` carrying copies of the tiles and
    the mask. `cancel` is anything with `is_set()`; it is polled between steps.
    """
    _check_params(steps, initial_temperature, cooling, flips_per_step)
    if rng is None:
        rng = np.random.default_rng(seed)
    score_fn = get_evaluator(method)

    initial = score_fn(grid).score
    state = SearchState(current_score=initial, best_score=initial, temperature=float(initial_temperature))
    stats = {"start_time": time.time(), "steps": steps, "initial_score": initial, "cancelled": False}

    rows, cols = grid.rows, grid.cols
    step_iter = trange(steps, desc="annealing") if verbose else range(steps)

    for step in step_iter:
        if cancel is not None and cancel.is_set():
            stats["cancelled"] = True
            break

        changed: List[Tuple[int, int, int]] = []
        for _ in range(flips_per_step):
            row = int(rng.integers(0, rows))
            col = int(rng.integers(0, cols))
            changed.append((row, col, grid.flip(row, col)))

        result = score_fn(grid)
        delta = result.score - state.current_score

        if accept_move(delta, state.temperature, rng):
            state.accepted += 1
            state.current_score = result.score
            if state.current_score > state.best_score:
                state.best_score = state.current_score
                state.attempt += 1
                if on_improvement is not None:
                    on_improvement(Improvement(grid.snapshot(), state.best_score, result.mask.copy(), state.attempt, step))
                if verbose:
                    step_iter.set_postfix({"best": state.best_score})
        else:
            state.rejected += 1
            grid.restore(changed)

        state.temperature *= cooling
        state.steps_done += 1

    if verbose:
        step_iter.close()
    stats["end_time"] = time.time()
    stats["duration_s"] = stats["end_time"] - stats["start_time"]
    stats.update(
        accepted=state.accepted,
        rejected=state.rejected,
        improvements=state.attempt,
        steps_done=state.steps_done,
        final_score=state.current_score,
        best_score=state.best_score,
        final_temperature=state.temperature,
    )
    return state.best_score, stats
