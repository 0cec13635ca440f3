"""Utilities for detecting and handling input types."""

import logging
from pathlib import Path
from typing import Union

from ..core.input_type import InputType
from .streaming_json_reader import StreamingJSONReader

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = ('.mp4', '.avi', '.mov', '.mkv', '.webm')


def detect_input_type(input_source: Union[str, int]) -> InputType:
    """
    Detect the type of input.

    Args:
        input_source: Camera index (int or digit string), video path or landmark recording

    Returns:
        Input type enum value

    Raises:
        FileNotFoundError: If a path is given that does not exist
        ValueError: If a JSON file is not a landmark recording
    """
    if isinstance(input_source, int) or str(input_source).isdigit():
        return InputType.CAMERA

    input_path_obj: Path = Path(input_source)
    if not input_path_obj.exists():
        raise FileNotFoundError(f"Input not found: {input_path_obj}")

    if input_path_obj.suffix.lower() == '.json':
        with StreamingJSONReader(input_path_obj) as reader:
            metadata = reader.get_metadata()
        if metadata.get('kind', 'landmarks') != 'landmarks':
            raise ValueError(f"{input_path_obj} is a {metadata['kind']!r} recording, not landmarks")
        return InputType.LANDMARKS

    if input_path_obj.suffix.lower() not in VIDEO_EXTENSIONS:
        logger.debug("Unknown extension %s, treating %s as a video", input_path_obj.suffix, input_path_obj)
    return InputType.VIDEO
