from __future__ import annotations

from typing import Callable, Dict, Tuple

from .params import WeavePattern

# Each pattern maps tile indices (col, row) to signed multipliers for the
# horizontal and vertical shift. x depends on the row, y on the column, so a
# whole row of tiles slides sideways together and a whole column slides
# vertically together.


def _plain(col: int, row: int) -> Tuple[float, float]:
    # checkerboard of opposing shifts
    x = 1.0 if row % 2 == 0 else -1.0
    y = 1.0 if col % 2 == 0 else -1.0
    return x, y


def _twill(col: int, row: int) -> Tuple[float, float]:
    # 4-step diagonal progression: -2.25, -0.75, 0.75, 2.25
    x = ((row % 4) - 1.5) * 1.5
    y = ((col % 4) - 1.5) * 1.5
    return x, y


def _satin(col: int, row: int) -> Tuple[float, float]:
    # stride 3 over 5 avoids the visible diagonal of twill
    x = float(((row * 3) % 5) - 2)
    y = float(((col * 3) % 5) - 2)
    return x, y


def _basket(col: int, row: int) -> Tuple[float, float]:
    # pairs of rows/cols move together
    x = 1.0 if (row // 2) % 2 == 0 else -1.0
    y = 1.0 if (col // 2) % 2 == 0 else -1.0
    return x, y


SHIFT_FACTORS: Dict[WeavePattern, Callable[[int, int], Tuple[float, float]]] = {
    WeavePattern.PLAIN: _plain,
    WeavePattern.TWILL: _twill,
    WeavePattern.SATIN: _satin,
    WeavePattern.BASKET: _basket,
}


def shift_factors(col: int, row: int, pattern: WeavePattern | str) -> Tuple[float, float]:
    """Return ``(x_factor, y_factor)`` for tile ``(col, row)`` under ``pattern``."""
    return SHIFT_FACTORS[WeavePattern(pattern)](col, row)
