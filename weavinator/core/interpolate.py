from __future__ import annotations

from typing import Optional

from .params import WeaveConfig

DEFAULT_RATE = 0.1

# fields eased toward the target; everything else switches instantly
EASED_FIELDS = ("horizontal_shift", "vertical_shift", "scatter_intensity", "tile_size")


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate(
    current: WeaveConfig,
    target: WeaveConfig,
    rate: float = DEFAULT_RATE,
    snap: Optional[float] = None,
) -> WeaveConfig:
    """Advance ``current`` one frame toward ``target``, in place.

    Numeric fields cover ``rate`` of the remaining distance, so they approach
    the target exponentially. With ``snap`` set, a field closer than ``snap``
    after the step lands exactly on the target value. Pattern, seed and
    opacity are copied as-is.
    """
    for name in EASED_FIELDS:
        goal = getattr(target, name)
        value = lerp(getattr(current, name), goal, rate)
        if snap is not None and abs(goal - value) < snap:
            value = goal
        setattr(current, name, value)

    current.pattern = target.pattern
    current.seed = target.seed
    current.opacity = target.opacity
    return current


def distance(a: WeaveConfig, b: WeaveConfig) -> float:
    """Largest per-field gap over the eased fields."""
    return max(abs(getattr(a, name) - getattr(b, name)) for name in EASED_FIELDS)
