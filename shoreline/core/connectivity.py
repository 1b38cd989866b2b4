"""
connectivity.py

Scores a grid: how many distinct OBSTACLE tiles touch the PATH region that is
connected (4-neighbourhood) to the source.

Provides:
- `evaluate` with a recursive or explicit-stack depth-first search
- `get_evaluator` to pick the scoring routine the annealer calls every step
  ("recursive", "stack" or the numba kernel "numba")
"""

from __future__ import annotations
import sys
from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np

from .errors import ConfigError
from .grid import Grid, OBSTACLE, PATH

# up, down, left, right
NEIGHBOURS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))

METHODS = ("recursive", "stack", "numba")


@dataclass
class ConnectivityResult:
    score: int
    mask: np.ndarray

    def __iter__(self):
        # allows `score, mask = evaluate(grid)`
        yield self.score
        yield self.mask


def _dfs(tiles: List[List[int]], rows: int, cols: int, row: int, col: int,
         visited: List[List[bool]], counted: List[List[bool]]) -> int:
    visited[row][col] = True
    score = 0
    for dr, dc in NEIGHBOURS:
        nr = row + dr
        nc = col + dc
        if 0 <= nr < rows and 0 <= nc < cols and not visited[nr][nc]:
            kind = tiles[nr][nc]
            if kind == PATH:
                counted[nr][nc] = True
                score += _dfs(tiles, rows, cols, nr, nc, visited, counted)
            elif kind == OBSTACLE and not counted[nr][nc]:
                score += 1
                counted[nr][nc] = True
    return score


def _evaluate_recursive(tiles: List[List[int]], rows: int, cols: int, source) -> Tuple[int, List[List[bool]]]:
    visited = [[False] * cols for _ in range(rows)]
    counted = [[False] * cols for _ in range(rows)]
    sr, sc = source
    counted[sr][sc] = True

    # the deepest possible chain is every cell of the grid
    limit = sys.getrecursionlimit()
    needed = rows * cols + 100
    if needed > limit:
        sys.setrecursionlimit(needed)
    try:
        score = _dfs(tiles, rows, cols, sr, sc, visited, counted)
    finally:
        if needed > limit:
            sys.setrecursionlimit(limit)
    return score, counted


def _evaluate_stack(tiles: List[List[int]], rows: int, cols: int, source) -> Tuple[int, List[List[bool]]]:
    visited = [[False] * cols for _ in range(rows)]
    counted = [[False] * cols for _ in range(rows)]
    sr, sc = source
    counted[sr][sc] = True

    score = 0
    stack = [(sr, sc)]
    while stack:
        row, col = stack.pop()
        if visited[row][col]:
            continue
        visited[row][col] = True
        for dr, dc in NEIGHBOURS:
            nr = row + dr
            nc = col + dc
            if 0 <= nr < rows and 0 <= nc < cols and not visited[nr][nc]:
                kind = tiles[nr][nc]
                if kind == PATH:
                    counted[nr][nc] = True
                    stack.append((nr, nc))
                elif kind == OBSTACLE and not counted[nr][nc]:
                    score += 1
                    counted[nr][nc] = True
    return score, counted


_PY_METHODS = {"recursive": _evaluate_recursive, "stack": _evaluate_stack}


def evaluate(grid: Grid, method: str = "recursive") -> ConnectivityResult:
    """
    Depth-first search from the source. PATH neighbours are credited and
    traversed; OBSTACLE neighbours are credited once, add one to the score and
    stop the traversal. The source is credited up front. `grid` is only read.
    """
    if method == "numba":
        from .fast import evaluate_tiles
        score, mask = evaluate_tiles(grid.tiles, grid.source[0], grid.source[1])
        return ConnectivityResult(int(score), mask)

    try:
        fn = _PY_METHODS[method]
    except KeyError:
        raise ConfigError(f"Unknown evaluation method {method!r} (expected one of: {', '.join(METHODS)})") from None

    score, counted = fn(grid.tiles.tolist(), grid.rows, grid.cols, grid.source)
    return ConnectivityResult(score, np.array(counted, dtype=bool))


def get_evaluator(method: str = "numba") -> Callable[[Grid], ConnectivityResult]:
    if method not in METHODS:
        raise ConfigError(f"Unknown evaluation method {method!r} (expected one of: {', '.join(METHODS)})")
    if method == "numba":
        from .fast import evaluate_tiles

        def _numba(grid: Grid) -> ConnectivityResult:
            score, mask = evaluate_tiles(grid.tiles, grid.source[0], grid.source[1])
            return ConnectivityResult(int(score), mask)

        return _numba
    return lambda grid: evaluate(grid, method=method)
