"""Base class for landmark sources."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional
import torch

logger = logging.getLogger(__name__)

FrameCallback = Callable[[Optional[torch.Tensor]], None]


class BaseLandmarkSource(ABC):
    """
    Abstract base class for anything that produces landmark frames.

    Subclasses implement `frames()`, a generator yielding one (N, 3)
    tensor per processed frame or None when no face was found.
    `start()` drives that generator and hands each frame to a callback
    until the source is exhausted or `stop()` is called.
    """

    def __init__(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    def frames(self) -> Iterator[Optional[torch.Tensor]]:
        """Yield landmark frames (or None for "no face") in order."""
        pass

    def start(self, callback: FrameCallback) -> int:
        """
        Run the source loop, invoking callback once per processed frame.

        Args:
            callback: Receives a (N, 3) landmark tensor or None

        Returns:
            Number of frames delivered
        """
        self._running = True
        delivered = 0
        logger.info("%s started", type(self).__name__)
        try:
            for frame in self.frames():
                if not self._running:
                    break
                callback(frame)
                delivered += 1
        finally:
            self._running = False
            logger.info("%s stopped after %d frames", type(self).__name__, delivered)
        return delivered

    def stop(self) -> None:
        """Ask the loop to end after the current frame."""
        self._running = False

    def close(self) -> None:
        """Release resources held by the source."""
        self.stop()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with automatic cleanup."""
        self.close()
