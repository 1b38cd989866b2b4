from __future__ import annotations
import numpy as np
from numba import njit


@njit(cache=True)
def _dfs_stack(tiles, sr, sc, counted):
    rows, cols = tiles.shape
    visited = np.zeros((rows, cols), dtype=np.bool_)
    stack_r = np.empty(rows * cols + 1, dtype=np.int64)
    stack_c = np.empty(rows * cols + 1, dtype=np.int64)
    dr = (-1, 1, 0, 0)
    dc = (0, 0, -1, 1)

    counted[sr, sc] = True
    stack_r[0] = sr
    stack_c[0] = sc
    top = 1
    score = 0
    while top > 0:
        top -= 1
        row = stack_r[top]
        col = stack_c[top]
        if visited[row, col]:
            continue
        visited[row, col] = True
        for k in range(4):
            nr = row + dr[k]
            nc = col + dc[k]
            if nr < 0 or nr >= rows or nc < 0 or nc >= cols or visited[nr, nc]:
                continue
            kind = tiles[nr, nc]
            if kind == 0:
                # a PATH cell is pushed at most once: it is credited on push
                if not counted[nr, nc]:
                    counted[nr, nc] = True
                    stack_r[top] = nr
                    stack_c[top] = nc
                    top += 1
            elif not counted[nr, nc]:
                score += 1
                counted[nr, nc] = True
    return score


def evaluate_tiles(tiles: np.ndarray, sr: int, sc: int):
    """numba kernel behind `connectivity.evaluate(..., method="numba")`."""
    counted = np.zeros(tiles.shape, dtype=np.bool_)
    score = _dfs_stack(np.ascontiguousarray(tiles, dtype=np.uint8), int(sr), int(sc), counted)
    return int(score), counted
