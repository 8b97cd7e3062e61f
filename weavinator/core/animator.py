from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .interpolate import DEFAULT_RATE, interpolate
from .params import DEFAULT_CONFIG, WeaveConfig, clamp_config
from .weave import WeaveEngine

logger = logging.getLogger(__name__)


class WeaveAnimator:
    """Per-frame driver: ease ``current`` toward ``target``, then weave.

    Hosts call :meth:`tick` from their own scheduler (a Qt timer, a browser
    polling loop). Calls must not overlap; the animator holds no lock.
    """

    def __init__(self, target: WeaveConfig | None = None, rate: float = DEFAULT_RATE, snap: Optional[float] = None):
        self.engine = WeaveEngine()
        self.rate = rate
        self.snap = snap
        self.target = clamp_config((target or DEFAULT_CONFIG).copy())
        self.current = self.target.zeroed()
        self.source: Optional[np.ndarray] = None
        self.frame: Optional[np.ndarray] = None
        self.frame_index = 0
        self.running = False

    def load(self, source: np.ndarray, target: WeaveConfig | None = None) -> None:
        """Install a new source raster and restart from the zero-effect state."""
        if target is not None:
            self.target = clamp_config(target.copy())
        self.source = source
        self.current = self.target.zeroed()
        self.frame = None
        self.frame_index = 0
        h, w = source.shape[:2]
        logger.info("loaded %dx%d raster, target %s", w, h, self.target.to_dict())
        self.start()

    def reset(self) -> None:
        self.stop()
        self.source = None
        self.frame = None
        self.frame_index = 0

    def set_target(self, target: WeaveConfig) -> None:
        self.target = clamp_config(target.copy())
        logger.debug("new target %s", self.target.to_dict())

    def start(self) -> None:
        if self.source is None:
            logger.debug("start ignored, no source loaded")
            return
        self.running = True

    def stop(self) -> None:
        self.running = False

    def tick(self) -> Optional[np.ndarray]:
        """Advance one frame. Returns the new frame, or None when idle."""
        if not self.running or self.source is None:
            return None
        interpolate(self.current, self.target, self.rate, self.snap)
        self.frame = self.engine.render(self.source, self.current)
        self.frame_index += 1
        return self.frame

    def require_frame(self) -> np.ndarray:
        if self.frame is None:
            if self.source is None:
                raise RuntimeError("no image loaded")
            self.frame = self.engine.render(self.source, self.current)
        return self.frame

    def record(self, frames: int) -> List[np.ndarray]:
        """Tick ``frames`` times and return a copy of every rendered frame."""
        out = []
        for _ in range(frames):
            frame = self.tick()
            if frame is None:
                break
            out.append(frame.copy())
        return out
