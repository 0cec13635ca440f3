"""Mapper implementations for landmark to expression and pose conversion."""

from .expression_mapper import ExpressionMapper, compute_expressions, measure_baseline
from .pose_estimator import PoseEstimator, compute_pose

__all__ = [
    "ExpressionMapper",
    "PoseEstimator",
    "compute_expressions",
    "compute_pose",
    "measure_baseline",
]
