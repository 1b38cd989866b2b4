"""
grid.py

Tile grid for the shoreline search.

A grid is a (rows, cols) uint8 array of PATH / OBSTACLE tiles plus a fixed
source cell. The source is always PATH. Mutation goes through `Grid.flip`,
which honours a protection policy around the source.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from .errors import ConfigError

PATH = 0
OBSTACLE = 1

Cell = Tuple[int, int]


class ProtectionPolicy(str, enum.Enum):
    # Path -> Obstacle is refused on the source's whole row and column.
    SHARED_LINE = "shared_line"
    # Path -> Obstacle is refused on the source cell only.
    SOURCE_ONLY = "source_only"


def as_policy(policy: Union[str, ProtectionPolicy]) -> ProtectionPolicy:
    try:
        return ProtectionPolicy(policy)
    except ValueError:
        choices = ", ".join(p.value for p in ProtectionPolicy)
        raise ConfigError(f"Unknown protection policy {policy!r} (expected one of: {choices})") from None


def check_dims(rows: int, cols: int) -> None:
    for name, value in (("rows", rows), ("cols", cols)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
            raise ConfigError(f"{name} must be a positive integer, got {value!r}")


def check_source(source: Cell, rows: int, cols: int) -> Cell:
    try:
        r, c = (int(v) for v in source)
    except (TypeError, ValueError):
        raise ConfigError(f"source must be a (row, col) pair, got {source!r}") from None
    if not (0 <= r < rows and 0 <= c < cols):
        raise ConfigError(f"source {(r, c)} is outside a {rows}x{cols} grid")
    return (r, c)


@dataclass
class Grid:
    rows: int
    cols: int
    tiles: np.ndarray
    source: Cell
    protection: ProtectionPolicy = ProtectionPolicy.SHARED_LINE

    @classmethod
    def random(
        cls,
        rows: int,
        cols: int,
        source: Cell,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        protection: Union[str, ProtectionPolicy] = ProtectionPolicy.SHARED_LINE,
    ) -> "Grid":
        """
        Every tile is PATH with probability 0.5, OBSTACLE otherwise; the source
        is then forced to PATH.
        """
        check_dims(rows, cols)
        source = check_source(source, rows, cols)
        policy = as_policy(protection)
        if rng is None:
            rng = np.random.default_rng(seed)

        draws = rng.random((rows, cols))
        tiles = np.where(draws < 0.5, PATH, OBSTACLE).astype(np.uint8)
        tiles[source] = PATH
        return cls(rows, cols, tiles, source, policy)

    @classmethod
    def from_tiles(
        cls,
        tiles,
        source: Cell,
        protection: Union[str, ProtectionPolicy] = ProtectionPolicy.SHARED_LINE,
    ) -> "Grid":
        raw = np.asarray(tiles)
        if raw.ndim != 2:
            raise ConfigError(f"tiles must be 2-D, got shape {raw.shape}")
        rows, cols = raw.shape
        check_dims(rows, cols)
        # check the values before casting so 1.5 or 256 cannot wrap into range
        if raw.dtype.kind not in "biuf" or not np.isin(raw, (PATH, OBSTACLE)).all():
            raise ConfigError("tiles may only contain PATH (0) and OBSTACLE (1)")
        arr = raw.astype(np.uint8)
        source = check_source(source, rows, cols)
        if arr[source] != PATH:
            raise ConfigError(f"source {source} must be a PATH tile")
        return cls(rows, cols, arr, source, as_policy(protection))

    def is_protected(self, row: int, col: int) -> bool:
        sr, sc = self.source
        if self.protection is ProtectionPolicy.SOURCE_ONLY:
            return row == sr and col == sc
        return row == sr or col == sc

    def flip(self, row: int, col: int) -> int:
        """Flip one tile in place and return its previous kind."""
        prior = int(self.tiles[row, col])
        if prior == OBSTACLE:
            self.tiles[row, col] = PATH
        elif not self.is_protected(row, col):
            self.tiles[row, col] = OBSTACLE
        return prior

    def restore(self, changed: Iterable[Tuple[int, int, int]]) -> None:
        # reverse order so a cell drawn twice ends at its first recorded kind
        for row, col, kind in reversed(list(changed)):
            self.tiles[row, col] = kind

    def snapshot(self) -> np.ndarray:
        return self.tiles.copy()
