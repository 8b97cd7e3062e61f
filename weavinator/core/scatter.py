from __future__ import annotations

import math
from typing import Optional

RIGHT = "right"
DOWN = "down"


def pseudo_random(col: int, row: int, seed: int) -> float:
    """Stable hash of a tile position into [0, 1)."""
    v = math.sin(col * 12.9898 + row * 78.233 + seed) * 43758.5453
    frac = v - math.floor(v)
    # tiny negative v rounds up to exactly 1.0
    return 0.0 if frac >= 1.0 else frac


def scatter_direction(value: float, intensity: float) -> Optional[str]:
    """Direction of the extra one-tile jump, or None if the tile stays put.

    ``intensity`` is a percentage; a tile jumps when its hash falls below
    ``intensity / 100``.
    """
    if value >= intensity / 100.0:
        return None
    return RIGHT if (value * 10.0) % 2.0 < 1.0 else DOWN
