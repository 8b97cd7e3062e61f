from __future__ import annotations

import io
import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from .image_ops import as_raster, to_image

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "woven-mosaic"


def export_filename(now: Optional[float] = None, suffix: str = ".png") -> str:
    """Download name stamped with epoch milliseconds, e.g. woven-mosaic-1700000000000.png"""
    if now is None:
        now = time.time()
    return f"{EXPORT_PREFIX}-{int(now * 1000)}{suffix}"


def encode_png(raster: np.ndarray) -> bytes:
    buf = io.BytesIO()
    to_image(raster).save(buf, format="PNG")
    return buf.getvalue()


def save_png(raster: np.ndarray, directory: Union[str, Path] = ".", filename: Optional[str] = None) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (filename or export_filename())
    to_image(raster).save(path, format="PNG")
    logger.info("exported %s", path)
    return path


def _gif_frame(frame: np.ndarray) -> np.ndarray:
    frame = as_raster(frame)
    return frame[..., 0] if frame.shape[2] < 3 else frame[..., :3]


def export_gif(frames: Sequence[np.ndarray], path: Union[str, Path], fps: int = 30, loop: bool = True) -> Path:
    """Write ``frames`` as an animated GIF."""
    import imageio.v3 as iio

    if not frames:
        raise ValueError("no frames to export")
    path = Path(path)
    dur = max(10, int(1000 / max(1, fps)))
    out = [_gif_frame(f) for f in frames]
    kwargs = {"loop": 0} if loop else {}
    iio.imwrite(path, out, extension=".gif", duration=dur, **kwargs)
    logger.info("exported %d frames to %s", len(out), path)
    return path
