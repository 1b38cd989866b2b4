# config.py
from dataclasses import dataclass, field
from typing import Optional, Tuple

from shoreline.core.connectivity import METHODS
from shoreline.core.errors import ConfigError
from shoreline.core.grid import as_policy, check_dims, check_source


@dataclass
class RunConfig:
    rows: int = 12
    cols: int = 12
    source: Tuple[int, int] = field(default=(11, 11))

    steps: int = 1_000_000
    initial_temperature: float = 1.0
    cooling: float = 0.95        # multiplied into the temperature every step
    flips_per_step: int = 2
    seed: Optional[int] = None

    protection: str = "shared_line"
    method: str = "numba"        # "numba", "recursive" or "stack"

    out_dir: str = "grids"
    gif_path: Optional[str] = "simulation.gif"   # None skips the animation
    frame_delay: int = 50        # hundredths of a second per frame
    final_hold: int = 10         # last frame shown this many times longer
    scale: int = 30
    queue_size: int = 64

    def validate(self) -> "RunConfig":
        check_dims(self.rows, self.cols)
        self.source = check_source(self.source, self.rows, self.cols)
        as_policy(self.protection)
        if self.method not in METHODS:
            raise ConfigError(f"Unknown evaluation method {self.method!r}")
        for name in ("scale", "frame_delay", "final_hold", "queue_size"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        return self
