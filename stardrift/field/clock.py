from __future__ import annotations

import math
from typing import Optional

from .config import ClockConfig


class FrameClock:
    """Clamped frame delta and a smoothed frame rate.

    [FORMULA] dt = min(max_dt, (now - last) / 1000)
    [FORMULA] rate = smoothing * rate + (1 - smoothing) / (dt or 1/60)
    [NOTES] The rate is display-only; the simulation never reads it.
    """

    def __init__(self, config: Optional[ClockConfig] = None, *, start_ms: Optional[float] = None) -> None:
        self.cfg = config or ClockConfig()
        self.last_timestamp: Optional[float] = None
        if start_ms is not None and math.isfinite(float(start_ms)):
            self.last_timestamp = float(start_ms)
        self.smoothed_rate = float(self.cfg.initial_rate)
        self.ticks = 0

    def tick(self, now_ms: float) -> float:
        """Return the frame delta in seconds for a host timestamp in ms."""
        now = float(now_ms)
        if not math.isfinite(now):
            return 0.0
        if self.last_timestamp is None:
            dt = 0.0
        else:
            dt = min(float(self.cfg.max_dt), max(0.0, (now - self.last_timestamp) / 1000.0))
        self.last_timestamp = now
        self.ticks += 1

        fps = 1.0 / (dt or 1.0 / 60.0)
        w = float(self.cfg.smoothing)
        self.smoothed_rate = self.smoothed_rate * w + fps * (1.0 - w)
        return dt

    @property
    def fps_label(self) -> str:
        return f"FPS: {self.smoothed_rate:.0f}"
