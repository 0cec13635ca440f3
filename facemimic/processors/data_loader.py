"""Load recorded landmark and output data from files."""

from typing import Tuple, Iterator, Optional, Dict, Any, Union
from pathlib import Path
import torch

from .streaming_json_reader import StreamingJSONReader


class DataLoader:
    """Load recordings written by DataExporter."""

    @staticmethod
    def load_landmarks(input_path: Union[str, Path],
                       device: str = 'cpu') -> Tuple[Iterator[Optional[torch.Tensor]], Dict[str, Any]]:
        """
        Load a landmarks sequence from JSON using streaming.

        Args:
            input_path: Input JSON file path
            device: Device to load tensors to

        Returns:
            Tuple of (landmarks iterator, metadata dict with fps, width, height, frame_count)

        Raises:
            FileNotFoundError: If the recording does not exist
        """
        input_path_obj: Path = Path(input_path)

        with StreamingJSONReader(input_path_obj) as reader:
            data = reader.get_metadata()

        metadata: Dict[str, Any] = dict(data)
        metadata['fps'] = float(data['fps']) if data.get('fps') is not None else None
        for key in ('width', 'height', 'frame_count'):
            metadata[key] = int(data[key]) if data.get(key) is not None else None

        return DataLoader._create_landmarks_iterator(input_path_obj, device), metadata

    @staticmethod
    def _create_landmarks_iterator(input_path: Path, device: str) -> Iterator[Optional[torch.Tensor]]:
        with StreamingJSONReader(input_path) as reader:
            for frame_landmarks in reader.read_items():
                if frame_landmarks is not None:
                    yield torch.tensor(frame_landmarks, dtype=torch.float32, device=device)
                else:
                    yield None

    @staticmethod
    def load_states(input_path: Union[str, Path]) -> Iterator[Optional[Dict[str, Any]]]:
        """
        Iterate the per-frame output records of a stabilized-output recording.

        Args:
            input_path: Input JSON file path

        Returns:
            Iterator of record dicts (None for frames that were not recorded)

        Raises:
            FileNotFoundError: If the recording does not exist
        """
        input_path_obj = Path(input_path)
        if not input_path_obj.exists():
            raise FileNotFoundError(f"Recording not found: {input_path_obj}")
        return DataLoader._create_states_iterator(input_path_obj)

    @staticmethod
    def _create_states_iterator(input_path: Path) -> Iterator[Optional[Dict[str, Any]]]:
        with StreamingJSONReader(input_path) as reader:
            for record in reader.read_items():
                yield record

    @staticmethod
    def get_metadata(input_path: Union[str, Path]) -> Dict[str, Any]:
        """Top-level metadata of any recording."""
        with StreamingJSONReader(input_path) as reader:
            return reader.get_metadata()
