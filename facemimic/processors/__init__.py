"""Stabilization, orchestration and recording utilities."""

from ..core.input_type import InputType
from .data_exporter import DataExporter
from .data_loader import DataLoader
from .events import EventEmitter
from .frame_rate import FrameRateCounter
from .input_utils import detect_input_type
from .pipeline import FacePipeline, FrameResult
from .stabilizer import Stabilizer, map_to_scene, stabilize_value
from .stream_utils import (
    apply_to_stream,
    is_iterator,
)

__all__ = [
    "DataExporter",
    "DataLoader",
    "EventEmitter",
    "FacePipeline",
    "FrameRateCounter",
    "FrameResult",
    "InputType",
    "Stabilizer",
    "apply_to_stream",
    "detect_input_type",
    "is_iterator",
    "map_to_scene",
    "stabilize_value",
]
