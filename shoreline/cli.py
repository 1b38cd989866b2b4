import argparse
import logging
import sys
from typing import Dict, Optional, Tuple

import numpy as np

from shoreline.config import RunConfig
from shoreline.core import anneal
from shoreline.core.errors import ConfigError, ExportError, FrameWriteError
from shoreline.core.grid import Grid
from shoreline.visualization.progress_gif import AsyncFrameSink, FrameWriter, clear_output_dir, export_gif

logger = logging.getLogger(__name__)


def run(cfg: RunConfig, verbose: bool = True, cancel=None) -> Tuple[int, Dict]:
    """Clear the frame folder, anneal a fresh random grid, then build the GIF."""
    cfg.validate()
    clear_output_dir(cfg.out_dir)

    rng = np.random.default_rng(cfg.seed)
    grid = Grid.random(cfg.rows, cfg.cols, cfg.source, rng=rng, protection=cfg.protection)
    writer = FrameWriter(cfg.out_dir, scale=cfg.scale)

    with AsyncFrameSink(writer, maxsize=cfg.queue_size) as sink:
        best, stats = anneal.run_annealing(
            grid,
            steps=cfg.steps,
            initial_temperature=cfg.initial_temperature,
            cooling=cfg.cooling,
            flips_per_step=cfg.flips_per_step,
            rng=rng,
            method=cfg.method,
            on_improvement=sink,
            cancel=cancel,
            verbose=verbose,
        )
    stats["frames_written"] = sink.written
    stats["frame_errors"] = len(sink.errors)
    stats["grid"] = grid

    if cfg.gif_path and sink.written == 0:
        logger.warning("No improvement over the initial grid; skipping %s", cfg.gif_path)
    elif cfg.gif_path:
        if verbose:
            print("Creating GIF...")
        stats["gif_frames"] = export_gif(cfg.out_dir, cfg.gif_path, delay=cfg.frame_delay, final_hold=cfg.final_hold)
        if verbose:
            print(f"GIF created: {cfg.gif_path}")
    return best, stats


def build_parser() -> argparse.ArgumentParser:
    d = RunConfig()
    parser = argparse.ArgumentParser(description="Shoreline — anneal a tile grid so the path from the source touches as many obstacles as possible.")
    parser.add_argument("--rows", type=int, default=d.rows, help="Grid rows")
    parser.add_argument("--cols", type=int, default=d.cols, help="Grid columns")
    parser.add_argument("--source", type=int, nargs=2, metavar=("ROW", "COL"), default=list(d.source), help="Source cell")
    parser.add_argument("--steps", type=int, default=d.steps, help="Number of annealing steps")
    parser.add_argument("--temperature", type=float, default=d.initial_temperature, help="Initial temperature")
    parser.add_argument("--cooling", type=float, default=d.cooling, help="Multiplicative cooling factor per step")
    parser.add_argument("--flips", type=int, default=d.flips_per_step, help="Tiles flipped per step")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--protection", choices=["shared_line", "source_only"], default=d.protection,
                        help="Which cells may never turn into obstacles")
    parser.add_argument("--method", choices=["numba", "recursive", "stack"], default=d.method, help="Scoring routine")
    parser.add_argument("--out", default=d.out_dir, help="Frame output directory (emptied at start)")
    parser.add_argument("--gif", default=d.gif_path, help="Animation output path")
    parser.add_argument("--no-gif", action="store_true", help="Skip building the animation")
    parser.add_argument("--delay", type=int, default=d.frame_delay, help="GIF frame delay in 1/100 s")
    parser.add_argument("--scale", type=int, default=d.scale, help="Pixels per tile in saved frames")
    parser.add_argument("--quiet", action="store_true", help="No progress bar")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    cfg = RunConfig(
        rows=args.rows,
        cols=args.cols,
        source=tuple(args.source),
        steps=args.steps,
        initial_temperature=args.temperature,
        cooling=args.cooling,
        flips_per_step=args.flips,
        seed=args.seed,
        protection=args.protection,
        method=args.method,
        out_dir=args.out,
        gif_path=None if args.no_gif else args.gif,
        frame_delay=args.delay,
        scale=args.scale,
    )

    try:
        best, stats = run(cfg, verbose=not args.quiet)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (ExportError, FrameWriteError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Best number of shore tiles: {best}")
    if stats["frame_errors"]:
        print(f"{stats['frame_errors']} frame(s) could not be written", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
