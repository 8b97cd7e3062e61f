from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping


class WeavePattern(str, Enum):
    PLAIN = "plain"
    TWILL = "twill"
    SATIN = "satin"
    BASKET = "basket"


class WeaveConfigError(ValueError):
    """Raised when a configuration value cannot be coerced."""


MIN_TILE_SIZE = 2
MAX_TILE_SIZE = 200
MAX_SHIFT = 200.0
MAX_PERCENT = 100.0


@dataclass
class WeaveConfig:
    tile_size: float = 40
    horizontal_shift: float = 20.0
    vertical_shift: float = 20.0
    scatter_intensity: float = 0.0
    pattern: WeavePattern = WeavePattern.PLAIN
    seed: int = 123
    opacity: float = 100.0

    def zeroed(self) -> "WeaveConfig":
        """Same config with every displacement switched off (entrance state)."""
        return replace(self, horizontal_shift=0.0, vertical_shift=0.0, scatter_intensity=0.0)

    def copy(self) -> "WeaveConfig":
        return replace(self)

    def to_dict(self) -> dict:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["pattern"] = WeavePattern(self.pattern).value
        return out

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: "WeaveConfig | None" = None) -> "WeaveConfig":
        """Build a clamped config from loose key/value input (JSON body, CLI).

        Keys may be snake_case or the camelCase used by the browser UI.
        Missing keys keep the value from ``base`` (``DEFAULT_CONFIG`` if None).
        """
        cfg = (base or DEFAULT_CONFIG).copy()
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in _FIELD_NAMES or value is None:
                continue
            setattr(cfg, name, _coerce(name, value))
        return clamp_config(cfg)


_FIELD_NAMES = {f.name for f in fields(WeaveConfig)}

_ALIASES = {
    "tileSize": "tile_size",
    "horizontalShift": "horizontal_shift",
    "verticalShift": "vertical_shift",
    "scatterIntensity": "scatter_intensity",
}


def _coerce(name: str, value: Any):
    if name == "pattern":
        return parse_pattern(value)
    try:
        if name == "seed":
            return int(float(value))
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise WeaveConfigError(f"{name}: expected a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise WeaveConfigError(f"{name}: expected a finite number, got {value!r}")
    return number


def parse_pattern(value: Any) -> WeavePattern:
    if isinstance(value, WeavePattern):
        return value
    try:
        return WeavePattern(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in WeavePattern)
        raise WeaveConfigError(f"pattern: {value!r} is not one of {choices}") from exc


def _clip(x: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, x))


def clamp_config(cfg: WeaveConfig) -> WeaveConfig:
    """Clamp every field to the ranges the UI exposes. Mutates and returns ``cfg``."""
    cfg.tile_size = _clip(cfg.tile_size, MIN_TILE_SIZE, MAX_TILE_SIZE)
    cfg.horizontal_shift = _clip(cfg.horizontal_shift, 0.0, MAX_SHIFT)
    cfg.vertical_shift = _clip(cfg.vertical_shift, 0.0, MAX_SHIFT)
    cfg.scatter_intensity = _clip(cfg.scatter_intensity, 0.0, MAX_PERCENT)
    cfg.opacity = _clip(cfg.opacity, 0.0, MAX_PERCENT)
    cfg.pattern = parse_pattern(cfg.pattern)
    cfg.seed = int(cfg.seed)
    return cfg


def suggest_config(width: int, height: int, base: WeaveConfig | None = None) -> WeaveConfig:
    """Defaults scaled to the image: a 10-tile short edge, 5% shifts."""
    cfg = replace(
        base or DEFAULT_CONFIG,
        tile_size=min(width, height) // 10,
        horizontal_shift=width // 20,
        vertical_shift=height // 20,
    )
    return clamp_config(cfg)


DEFAULT_CONFIG = WeaveConfig()


GRID_DIVISIONS = (2, 4, 8, 16, 32)


def tile_size_for_division(width: int, height: int, division: int) -> int:
    """Tile size that cuts the short edge into ``division`` tiles."""
    if division < 1:
        raise WeaveConfigError(f"division: expected a positive integer, got {division!r}")
    size = min(width, height) // division
    return int(_clip(size, MIN_TILE_SIZE, MAX_TILE_SIZE))


def grid_readout(width: int, height: int, tile_size: float) -> tuple:
    """Approximate (columns, rows) shown next to the division presets."""
    # half-up rounding, not banker's
    return (int(math.floor(width / tile_size + 0.5)), int(math.floor(height / tile_size + 0.5)))
