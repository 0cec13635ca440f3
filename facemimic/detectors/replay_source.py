"""Landmark source that replays a recording written by DataExporter."""

import time
from typing import Callable, Iterator, Optional, Union
from pathlib import Path
import torch

from ..core.base_source import BaseLandmarkSource
from ..processors.data_loader import DataLoader


class ReplayLandmarkSource(BaseLandmarkSource):
    """
    Streams recorded landmark frames, optionally paced to the recorded fps.
    """

    def __init__(self,
                 input_path: Union[str, Path],
                 realtime: bool = False,
                 device: str = 'cpu',
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            input_path: Landmark recording (JSON)
            realtime: Sleep between frames to match the recorded fps
            device: Device for the yielded tensors
            sleep: Sleep function used for pacing

        Raises:
            FileNotFoundError: If the recording does not exist
        """
        super().__init__()
        self.input_path = Path(input_path)
        self.device = device
        self.realtime = realtime
        self.sleep = sleep

        # Reads only the metadata; frames are streamed in frames()
        _, self.metadata = DataLoader.load_landmarks(self.input_path, device)
        self.fps: Optional[float] = self.metadata.get('fps')
        self.width: Optional[int] = self.metadata.get('width')
        self.height: Optional[int] = self.metadata.get('height')
        self.frame_count: Optional[int] = self.metadata.get('frame_count')

    def frames(self) -> Iterator[Optional[torch.Tensor]]:
        landmarks_iterator, _ = DataLoader.load_landmarks(self.input_path, self.device)
        interval = 1.0 / self.fps if self.realtime and self.fps else 0.0
        for i, landmarks in enumerate(landmarks_iterator):
            if interval and i > 0:
                self.sleep(interval)
            yield landmarks
