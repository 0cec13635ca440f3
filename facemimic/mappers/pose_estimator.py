"""Head pose estimation from facial landmarks."""

import math
from typing import Optional
import torch

from ..core.base_mapper import BaseLandmarkMapper
from ..core.config import MappingConfig, PoseConfig
from ..core.constants import LANDMARK_POINTS, POSE_LEFT_POINTS, POSE_RIGHT_POINTS
from ..core.landmarks import LandmarkInput, prepare_frame
from ..core.types import PoseTransform, Rotation, Vector3

P = LANDMARK_POINTS


def neutral_pose(config: Optional[PoseConfig] = None) -> PoseTransform:
    """Centered, unrotated pose at the reference eye distance."""
    pose_config = config if config is not None else PoseConfig()
    return PoseTransform.neutral(pose_config.reference_eye_distance * pose_config.scale_normalization)


def _estimate(landmarks: torch.Tensor, c: PoseConfig) -> PoseTransform:
    """
    Fuse several landmark signals into one pose.

    Yaw and pitch each combine a depth signal with a projected-offset
    signal; roll is read directly from the outer eye corners.
    """
    nose = landmarks[P["nose_tip"]]
    bridge = landmarks[P["nose_bridge"]]
    chin = landmarks[P["chin"]]
    forehead = landmarks[P["forehead"]]
    left_eye = landmarks[P["left_eye_outer"]]
    right_eye = landmarks[P["right_eye_outer"]]

    # Inter-ocular distance is both the size driver and the depth proxy
    eye_distance = torch.norm(right_eye - left_eye).item()
    scale = eye_distance * c.scale_normalization

    position = Vector3(
        x=((bridge[0] - 0.5) * 2).item(),
        y=(-(bridge[1] - 0.5) * 2).item(),
        z=(eye_distance - c.reference_eye_distance) * c.depth_gain,
    )

    # Yaw: depth difference of symmetric points plus nose offset from the eye midline
    left_depth = landmarks[POSE_LEFT_POINTS, 2].mean().item()
    right_depth = landmarks[POSE_RIGHT_POINTS, 2].mean().item()
    eye_mid_x = ((left_eye[0] + right_eye[0]) / 2).item()
    yaw = -((left_depth - right_depth) * c.yaw_depth_weight
            + (nose[0].item() - eye_mid_x) * c.yaw_offset_weight)

    # Pitch: upper/lower face span ratio against neutral, plus nose protrusion
    upper_span = (bridge[1] - forehead[1]).item()
    lower_span = (chin[1] - bridge[1]).item() + c.span_epsilon
    lower_span = math.copysign(max(abs(lower_span), c.span_epsilon), lower_span)
    span_ratio = min(max(upper_span / lower_span, -c.max_span_ratio), c.max_span_ratio)
    pitch = -((span_ratio - c.neutral_span_ratio) * c.pitch_ratio_weight
              + (nose[2] - bridge[2]).item() * c.pitch_depth_weight)

    roll = math.atan2((right_eye[1] - left_eye[1]).item(), (right_eye[0] - left_eye[0]).item())

    return PoseTransform(position=position, rotation=Rotation(pitch=pitch, yaw=yaw, roll=roll), scale=scale)


def compute_pose(landmarks: Optional[LandmarkInput], config: Optional[MappingConfig] = None) -> PoseTransform:
    """
    Estimate the head pose of one landmark frame.

    Args:
        landmarks: 468/478-point frame (tensor, array or sequence of points)
        config: Tunables; the pose section is used

    Returns:
        PoseTransform in the normalized camera-relative frame. An absent,
        short or non-finite frame yields the neutral pose.
    """
    pose_config = (config if config is not None else MappingConfig()).pose
    frame = prepare_frame(landmarks)
    if frame is None:
        return neutral_pose(pose_config)
    return _estimate(frame, pose_config)


class PoseEstimator(BaseLandmarkMapper):
    """Maps landmark frames to PoseTransform values."""

    def _map_single(self, landmarks: torch.Tensor) -> PoseTransform:
        return _estimate(landmarks, self.config.pose)

    def default_output(self) -> PoseTransform:
        return neutral_pose(self.config.pose)
