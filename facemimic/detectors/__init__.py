"""
Landmark sources: live detection and recording replay.

MediaPipeLandmarkSource lives in `facemimic.detectors.mediapipe_source`
and is imported from there so that replay-only use does not load MediaPipe.
"""

from .replay_source import ReplayLandmarkSource

__all__ = [
    "ReplayLandmarkSource",
]
