from __future__ import annotations
import numpy as np
from PIL import Image

# indexed by tile kind * 2 + credited
PALETTE = np.array(
    [
        [20, 20, 20, 255],    # path, not reached
        [190, 190, 190, 255], # path, reached
        [177, 57, 14, 255],   # obstacle, not reached
        [185, 126, 31, 255],  # obstacle, reached
    ],
    dtype=np.uint8,
)

DEFAULT_SCALE = 30


def render_tiles(tiles: np.ndarray, mask: np.ndarray) -> np.ndarray:
    tiles = np.asarray(tiles)
    mask = np.asarray(mask, dtype=bool)
    if tiles.shape != mask.shape or tiles.ndim != 2:
        raise ValueError(f"tiles {tiles.shape} and mask {mask.shape} must be the same 2-D shape")
    idx = tiles.astype(np.intp) * 2 + mask.astype(np.intp)
    return PALETTE[idx]


def render_frame(tiles: np.ndarray, mask: np.ndarray, scale: int = DEFAULT_SCALE) -> Image.Image:
    """One pixel per tile, then a nearest-neighbour upscale by `scale`."""
    if scale < 1:
        raise ValueError(f"scale must be >= 1, got {scale}")
    rgba = render_tiles(tiles, mask)
    img = Image.fromarray(rgba)
    if scale == 1:
        return img
    h, w = rgba.shape[:2]
    return img.resize((w * scale, h * scale), Image.NEAREST)


def frame_filename(attempt: int, score: int, prefix: str = "grid") -> str:
    return f"{prefix}_{attempt}_{score}.png"
