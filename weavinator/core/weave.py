from __future__ import annotations

import logging
import math
from typing import Iterator, NamedTuple, Optional

import numpy as np

from .params import MIN_TILE_SIZE, WeaveConfig
from .patterns import shift_factors
from .scatter import DOWN, RIGHT, pseudo_random, scatter_direction

logger = logging.getLogger(__name__)

# below this every displacement is sub-pixel, so the weave is skipped
NEGLIGIBLE = 0.5


class TilePlacement(NamedTuple):
    col: int
    row: int
    src_x: int
    src_y: int
    w: int
    h: int
    dest_x: int
    dest_y: int
    direction: Optional[str]


def effective_tile_size(tile_size: float) -> int:
    return max(MIN_TILE_SIZE, int(round(tile_size)))


def is_negligible(cfg: WeaveConfig) -> bool:
    return (
        abs(cfg.horizontal_shift) < NEGLIGIBLE
        and abs(cfg.vertical_shift) < NEGLIGIBLE
        and cfg.scatter_intensity < NEGLIGIBLE
    )


def wrap(value: float, size: int) -> int:
    """Toroidal wrap of a real coordinate onto a pixel index in [0, size)."""
    # float modulo of a tiny negative can land exactly on size
    return int(math.floor(value % size)) % size


def grid_shape(width: int, height: int, tile_size: float) -> tuple[int, int]:
    tile = effective_tile_size(tile_size)
    return math.ceil(width / tile), math.ceil(height / tile)


def plan_tiles(width: int, height: int, cfg: WeaveConfig) -> Iterator[TilePlacement]:
    """Yield the placement of every tile, row by row, in draw order."""
    tile = effective_tile_size(cfg.tile_size)
    cols, rows = grid_shape(width, height, tile)
    for row in range(rows):
        for col in range(cols):
            sx = col * tile
            sy = row * tile
            w = min(tile, width - sx)
            h = min(tile, height - sy)

            fx, fy = shift_factors(col, row, cfg.pattern)
            dx = wrap(sx + cfg.horizontal_shift * fx, width)
            dy = wrap(sy + cfg.vertical_shift * fy, height)

            direction = scatter_direction(pseudo_random(col, row, cfg.seed), cfg.scatter_intensity)
            if direction == RIGHT:
                dx = (dx + tile) % width
            elif direction == DOWN:
                dy = (dy + tile) % height

            yield TilePlacement(col, row, sx, sy, w, h, dx, dy, direction)


def _blit(dest: np.ndarray, src: np.ndarray, sx: int, sy: int, w: int, h: int, px: int, py: int) -> None:
    H, W = dest.shape[:2]
    x0, y0 = max(px, 0), max(py, 0)
    x1, y1 = min(px + w, W), min(py + h, H)
    if x0 >= x1 or y0 >= y1:
        return
    dest[y0:y1, x0:x1] = src[sy + y0 - py : sy + y1 - py, sx + x0 - px : sx + x1 - px]


def composite_tile(dest: np.ndarray, src: np.ndarray, p: TilePlacement) -> None:
    """Copy one tile into ``dest``, splitting it across the seams if it wraps."""
    H, W = dest.shape[:2]
    if p.dest_x + p.w <= W and p.dest_y + p.h <= H:
        dest[p.dest_y : p.dest_y + p.h, p.dest_x : p.dest_x + p.w] = src[
            p.src_y : p.src_y + p.h, p.src_x : p.src_x + p.w
        ]
        return
    for oy in (0, -H):
        for ox in (0, -W):
            _blit(dest, src, p.src_x, p.src_y, p.w, p.h, p.dest_x + ox, p.dest_y + oy)


class WeaveEngine:
    """Renders the tile weave of a source raster.

    Holds a read buffer with an untouched copy of the source and a default
    destination buffer. Both follow the source shape and are reallocated
    whenever it changes, so a resize between frames never reads out of bounds.
    """

    def __init__(self):
        self._read: Optional[np.ndarray] = None
        self._dest: Optional[np.ndarray] = None

    @property
    def buffer_shape(self) -> Optional[tuple]:
        return None if self._read is None else self._read.shape

    def _ensure_buffers(self, source: np.ndarray) -> None:
        if self._read is not None and self._read.shape == source.shape and self._read.dtype == source.dtype:
            return
        logger.debug("allocating weave buffers %s -> %s", self.buffer_shape, source.shape)
        self._read = np.empty_like(source)
        self._dest = np.empty_like(source)

    def render(self, source: np.ndarray, cfg: WeaveConfig, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Weave ``source`` with ``cfg`` and return the destination raster.

        ``out`` is written in place when its shape and dtype match the source;
        otherwise the engine's own destination buffer is used. ``cfg`` is
        trusted: ``tile_size`` is only rounded to whole pixels.
        """
        self._ensure_buffers(source)
        if out is not None and out.shape == source.shape and out.dtype == source.dtype:
            dest = out
        else:
            if out is not None:
                logger.debug("output raster %s does not match source %s, using own buffer", out.shape, source.shape)
            dest = self._dest

        np.copyto(self._read, source)
        if is_negligible(cfg):
            np.copyto(dest, self._read)
            return dest

        dest.fill(0)
        height, width = source.shape[:2]
        for p in plan_tiles(width, height, cfg):
            composite_tile(dest, self._read, p)
        return dest


def weave(source: np.ndarray, cfg: WeaveConfig) -> np.ndarray:
    """One-shot render into a fresh array."""
    return WeaveEngine().render(source, cfg).copy()
