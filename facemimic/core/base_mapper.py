"""Base class for landmark-frame mappers."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union, Iterator, List
import torch

from .config import MappingConfig
from .landmarks import LandmarkInput, prepare_frame


class BaseLandmarkMapper(ABC):
    """
    Abstract base class for pure per-frame mappers (expressions, pose).

    Subclasses implement `_map_single` for a validated frame and
    `default_output` for the "no face" case; this class takes care of
    input conversion and of the single/batch/stream calling convention.
    """

    def __init__(self, config: Optional[MappingConfig] = None):
        """
        Initialize the mapper.

        Args:
            config: Shared tunables; read at call time, never copied
        """
        self.config = config if config is not None else MappingConfig()

    def map(self,
            input_data: Union[LandmarkInput, Iterator[Optional[LandmarkInput]], List[Optional[LandmarkInput]], None]
            ) -> Union[Any, Iterator[Optional[Any]], List[Optional[Any]]]:
        """
        Unified mapping interface supporting single frames, batch, and streaming modes.

        Args:
            input_data: A landmark tensor/array, a list of frames, or an iterator of frames

        Returns:
            - Single input: mapped value (defaults for an unusable frame)
            - Multiple inputs: Iterator or List, with None entries passed through
        """
        from ..processors.stream_utils import dispatch_frames

        return dispatch_frames(input_data, self.map_frame)

    def map_frame(self, landmarks: Optional[LandmarkInput]) -> Any:
        """Map one frame; never raises for absent or malformed input."""
        frame = self.preprocess_landmarks(landmarks)
        if frame is None:
            return self.default_output()
        return self._map_single(frame)

    def preprocess_landmarks(self, landmarks: Optional[LandmarkInput]) -> Optional[torch.Tensor]:
        """
        Convert input to a (N, 3) float tensor.

        Returns:
            Landmarks tensor, or None if the frame is absent, short or not finite
        """
        return prepare_frame(landmarks)

    @abstractmethod
    def _map_single(self, landmarks: torch.Tensor) -> Any:
        """Map a validated (N, 3) landmark tensor."""
        pass

    @abstractmethod
    def default_output(self) -> Any:
        """Neutral value returned for frames that cannot be used."""
        pass
