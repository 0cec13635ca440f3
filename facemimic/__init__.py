"""
facemimic

Maps facial landmark streams to ARKit-style expression coefficients and a
head pose, stabilizes both over time and drives a 3D character's transform
and morph targets so it mimics a live performer.
"""

__version__ = "1.0.0"

from .core.config import MappingConfig, load_config, save_config
from .core.input_type import InputType
from .core.types import Baseline, PoseTransform, SceneTransform, StabilizedState
from .detectors.replay_source import ReplayLandmarkSource
from .mappers.expression_mapper import ExpressionMapper, compute_expressions, measure_baseline
from .mappers.pose_estimator import PoseEstimator, compute_pose
from .processors.data_exporter import DataExporter
from .processors.data_loader import DataLoader
from .processors.events import EventEmitter
from .processors.input_utils import detect_input_type
from .processors.pipeline import FacePipeline, FrameResult
from .processors.stabilizer import Stabilizer, map_to_scene
from .scene.binding import InfluenceBinding
from .scene.headless_node import HeadlessSceneNode

__all__ = [
    "Baseline",
    "DataExporter",
    "DataLoader",
    "EventEmitter",
    "ExpressionMapper",
    "FacePipeline",
    "FrameResult",
    "HeadlessSceneNode",
    "InfluenceBinding",
    "InputType",
    "MappingConfig",
    "PoseEstimator",
    "PoseTransform",
    "ReplayLandmarkSource",
    "SceneTransform",
    "StabilizedState",
    "Stabilizer",
    "compute_expressions",
    "compute_pose",
    "detect_input_type",
    "load_config",
    "map_to_scene",
    "measure_baseline",
    "save_config",
]
