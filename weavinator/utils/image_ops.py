from __future__ import annotations

import colorsys
import math
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, UnidentifiedImageError


class RasterError(ValueError):
    """Raised when an image cannot be turned into a raster."""


def load_raster(src: Union[str, Path, BinaryIO]) -> np.ndarray:
    """Decode an image file (path or file object) into an RGB uint8 array."""
    try:
        with Image.open(src) as pil:
            arr = np.array(pil.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        raise RasterError(f"cannot decode image: {exc}") from exc
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise RasterError("image has no pixels")
    return arr


def as_raster(arr: np.ndarray) -> np.ndarray:
    """Coerce a 2D or 3D array into a contiguous (H, W, C) uint8 raster."""
    arr = np.asarray(arr)
    if arr.ndim == 2:
        arr = arr[..., None]
    if arr.ndim != 3:
        raise RasterError(f"expected a (H, W) or (H, W, C) array, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        if np.issubdtype(arr.dtype, np.floating) and arr.size and arr.max() <= 1.0:
            arr = arr * 255.0
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    return np.ascontiguousarray(arr)


def to_image(raster: np.ndarray) -> Image.Image:
    raster = as_raster(raster)
    if raster.shape[2] == 1:
        return Image.fromarray(raster[..., 0], "L")
    if raster.shape[2] == 4:
        return Image.fromarray(raster, "RGBA")
    return Image.fromarray(raster[..., :3], "RGB")


def raster_checksum(raster: np.ndarray) -> np.ndarray:
    """Per-channel pixel sums; equal before and after a pure rearrangement."""
    return raster.reshape(-1, raster.shape[-1]).sum(axis=0, dtype=np.int64)


def generate_random_shapes(width: int, height: int, n: int = 30, angularity: float = 0.5, seed=None) -> np.ndarray:
    """Random coloured polygons on black, as an RGB raster."""
    rng = np.random.default_rng(seed)
    img = Image.new("RGB", (width, height), (0, 0, 0))
    d = ImageDraw.Draw(img)
    for _ in range(n):
        cx = rng.integers(0, width)
        cy = rng.integers(0, height)
        r = rng.integers(max(1, min(width, height) // 20), max(2, min(width, height) // 5))
        sides = int(3 + (1 - angularity) * 5 + angularity * 20)
        pts = []
        for k in range(sides):
            a = 2 * math.pi * k / sides + rng.random() * 0.2 * angularity
            rr = r * (0.7 + 0.6 * rng.random() * angularity)
            pts.append((cx + rr * math.cos(a), cy + rr * math.sin(a)))
        fill = tuple(int(c) for c in rng.integers(40, 256, size=3))
        d.polygon(pts, fill=fill)
    return np.array(img, dtype=np.uint8)


def _tile_color(index: int, count: int) -> Tuple[int, int, int]:
    hue = (index * 0.618033988749895) % 1.0
    light = 0.35 + 0.3 * ((index * 7) % max(1, count)) / max(1, count)
    r, g, b = colorsys.hls_to_rgb(hue, light, 0.85)
    return int(r * 255), int(g * 255), int(b * 255)


def tile_test_card(width: int, height: int, tile_size: int) -> np.ndarray:
    """RGB raster with one flat colour per grid tile, handy to follow tiles around."""
    cols = math.ceil(width / tile_size)
    rows = math.ceil(height / tile_size)
    out = np.zeros((height, width, 3), dtype=np.uint8)
    for row in range(rows):
        for col in range(cols):
            idx = row * cols + col
            out[row * tile_size : (row + 1) * tile_size, col * tile_size : (col + 1) * tile_size] = _tile_color(
                idx, rows * cols
            )
    return out
