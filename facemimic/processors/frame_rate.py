"""Detection frame rate measurement."""

import time
from typing import Callable, Optional


class FrameRateCounter:
    """
    Counts processed frames and publishes a rounded rate once per interval.

    The clock is injectable so replays and tests can drive it.
    """

    def __init__(self, interval: float = 1.0, clock: Callable[[], float] = time.perf_counter):
        """
        Args:
            interval: Seconds between rate updates
            clock: Monotonic time source in seconds
        """
        self.interval = interval
        self.clock = clock
        self.fps = 0
        self._frame_count = 0
        self._last_time: Optional[float] = None

    def tick(self) -> Optional[int]:
        """
        Count one frame.

        Returns:
            The new rate when an interval has elapsed, otherwise None
        """
        now = self.clock()
        if self._last_time is None:
            self._last_time = now
            return None

        self._frame_count += 1

        elapsed = now - self._last_time
        if elapsed < self.interval:
            return None

        self.fps = int(round(self._frame_count / elapsed))
        self._frame_count = 0
        self._last_time = now
        return self.fps

    def reset(self) -> None:
        self.fps = 0
        self._frame_count = 0
        self._last_time = None
