"""
Vertical speed (VSI) estimation.

Finite difference over the last few samples inside a short time window.
The barometer delivers roughly 1 Hz, so a Kalman filter buys nothing
here; the window just keeps one noisy sample from dominating.
"""

import time
from collections import deque
from typing import Deque, Optional, Tuple

from altimeter.config import config


class VerticalSpeedEstimator:
    """
    Rolling vertical speed from an altitude history.

    The history is bounded by time, not by count. When fewer than two
    samples remain in the window the previous estimate is kept rather
    than dropped to zero, so the gauge doesn't flicker between updates.
    """

    def __init__(
        self,
        window_seconds: Optional[float] = None,
        sample_count: Optional[int] = None,
    ):
        self.window_seconds = window_seconds or config.altimetry.vsi_window_seconds
        self.sample_count = sample_count or config.altimetry.vsi_sample_count

        self._history: Deque[Tuple[float, float]] = deque()
        self._vertical_speed_ms: float = 0.0

    @property
    def vertical_speed_ms(self) -> float:
        """Last computed vertical speed, m/s (positive = climb)."""
        return self._vertical_speed_ms

    @property
    def history_size(self) -> int:
        return len(self._history)

    def update(self, altitude_m: float, now: Optional[float] = None) -> float:
        """Add a sample and return the (possibly unchanged) estimate."""
        now = time.time() if now is None else now
        self._history.append((now, altitude_m))

        cutoff = now - self.window_seconds
        while self._history and self._history[0][0] < cutoff:
            self._history.popleft()

        if len(self._history) < 2:
            return self._vertical_speed_ms

        recent = list(self._history)[-self.sample_count:]
        first_time, first_altitude = recent[0]
        last_time, last_altitude = recent[-1]
        elapsed = last_time - first_time
        if elapsed <= 0:
            return self._vertical_speed_ms

        self._vertical_speed_ms = (last_altitude - first_altitude) / elapsed
        return self._vertical_speed_ms

    def reset(self) -> None:
        self._history.clear()
        self._vertical_speed_ms = 0.0
