from __future__ import annotations
import logging
import os
import queue
import re
import shutil
import threading
from typing import List, Optional

import imageio.v3 as iio
import numpy as np
from PIL import Image

from shoreline.core.anneal import Improvement
from shoreline.core.errors import ExportError, FrameWriteError
from .render import DEFAULT_SCALE, frame_filename, render_frame

logger = logging.getLogger(__name__)

FRAME_EXTENSIONS = (".png",)


def clear_output_dir(path: str) -> int:
    """
    Make sure `path` exists and is empty. Best effort: anything that cannot be
    removed is logged and left behind. Returns the number of entries removed.
    """
    try:
        os.makedirs(path, exist_ok=True)
        entries = os.listdir(path)
    except OSError as exc:
        logger.warning("Could not prepare output directory %s: %s", path, exc)
        return 0

    removed = 0
    for name in entries:
        full = os.path.join(path, name)
        try:
            if os.path.isdir(full) and not os.path.islink(full):
                shutil.rmtree(full)
            else:
                os.remove(full)
            removed += 1
        except OSError as exc:
            logger.warning("Could not remove %s: %s", full, exc)
    return removed


def natural_sort_key(name: str):
    # "grid_10_7.png" sorts after "grid_9_7.png"
    return [(0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk) for chunk in re.split(r"(\d+)", name) if chunk]


def list_frames(folder: str, extensions=FRAME_EXTENSIONS) -> List[str]:
    names = [n for n in os.listdir(folder) if n.lower().endswith(extensions) and os.path.isfile(os.path.join(folder, n))]
    return sorted(names, key=natural_sort_key)


class FrameWriter:

    def __init__(self, out_dir: str, scale: int = DEFAULT_SCALE, prefix: str = "grid"):
        self.out_dir = out_dir
        self.scale = scale
        self.prefix = prefix
        try:
            os.makedirs(self.out_dir, exist_ok=True)
        except OSError as exc:
            raise FrameWriteError(f"Could not create frame directory {out_dir}: {exc}") from exc

    def callback(self, event: Improvement) -> str:
        path = os.path.join(self.out_dir, frame_filename(event.attempt, event.score, self.prefix))
        try:
            img = render_frame(event.tiles, event.mask, scale=self.scale)
            img.save(path)
        except (OSError, ValueError) as exc:
            raise FrameWriteError(f"Could not write frame {path}: {exc}") from exc
        return path

    __call__ = callback


class AsyncFrameSink:
    """
    Hands improvement events to a FrameWriter on a worker thread so the
    annealing loop does not wait on disk. The queue is bounded; when it is
    full the producer waits for the worker.
    """

    _STOP = object()

    def __init__(self, writer: FrameWriter, maxsize: int = 64):
        self.writer = writer
        self.errors: List[FrameWriteError] = []
        self.written = 0
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(target=self._run, name="frame-writer", daemon=True)
        self._thread.start()

    def _run(self):
        while True:
            event = self._queue.get()
            try:
                if event is self._STOP:
                    return
                self.writer.callback(event)
                self.written += 1
            except FrameWriteError as exc:
                logger.warning("%s", exc)
                self.errors.append(exc)
            except Exception as exc:
                # the worker must keep draining or the bounded queue stalls the search
                err = FrameWriteError(f"Frame {getattr(event, 'attempt', '?')} failed: {exc!r}")
                err.__cause__ = exc
                logger.warning("%s", err)
                self.errors.append(err)
            finally:
                self._queue.task_done()

    def callback(self, event: Improvement):
        self._queue.put(event)

    __call__ = callback

    def close(self, timeout: Optional[float] = None):
        if self._thread.is_alive():
            self._queue.put(self._STOP)
            self._thread.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False


def export_gif(frame_dir: str, out_path: str, delay: int = 50, final_hold: int = 10, loop: int = 0) -> int:
    """
    Stitch every frame in `frame_dir` (natural filename order) into one GIF.

    `delay` is the per-frame delay in hundredths of a second; the last frame is
    held `final_hold` times as long. Returns the number of frames written.
    """
    try:
        names = list_frames(frame_dir)
    except OSError as exc:
        raise ExportError(f"Could not read frame directory {frame_dir}: {exc}") from exc
    if not names:
        raise ExportError(f"No frames found in {frame_dir}")

    frames = []
    for name in names:
        path = os.path.join(frame_dir, name)
        try:
            arr = iio.imread(path)
        except (OSError, ValueError) as exc:
            raise ExportError(f"Could not decode frame {path}: {exc}") from exc
        frames.append(Image.fromarray(np.asarray(arr, dtype=np.uint8)).convert("RGB"))

    # Pillow takes milliseconds
    durations = [delay * 10] * len(frames)
    durations[-1] *= final_hold

    first, *rest = frames
    try:
        first.save(out_path, save_all=True, append_images=rest, duration=durations, loop=loop)
    except (OSError, ValueError) as exc:
        raise ExportError(f"Could not encode {out_path}: {exc}") from exc
    return len(frames)
