"""Core components for the facemimic package."""

from .base_mapper import BaseLandmarkMapper
from .base_scene_node import BaseSceneNode
from .base_source import BaseLandmarkSource
from .config import MappingConfig, load_config, save_config
from .types import Baseline, PoseTransform, SceneTransform, StabilizedState

__all__ = [
    "BaseLandmarkMapper",
    "BaseLandmarkSource",
    "BaseSceneNode",
    "Baseline",
    "MappingConfig",
    "PoseTransform",
    "SceneTransform",
    "StabilizedState",
    "load_config",
    "save_config",
]
