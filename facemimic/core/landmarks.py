"""Conversion and validation of landmark frames."""

import numbers
from typing import Any, Optional, Sequence, Union
import numpy as np
import torch

from .constants import NUM_FACE_LANDMARKS, NUM_REFINED_LANDMARKS

LandmarkInput = Union[torch.Tensor, np.ndarray, Sequence[Any]]


def is_point(item: Any) -> bool:
    """True if item reads as one landmark point rather than a whole frame."""
    if isinstance(item, (torch.Tensor, np.ndarray)):
        return item.ndim == 1
    if isinstance(item, dict):
        return "x" in item
    if isinstance(item, (list, tuple)):
        return len(item) > 0 and isinstance(item[0], numbers.Real)
    return hasattr(item, "x") and hasattr(item, "y")


def _point_to_xyz(point: Any) -> Sequence[float]:
    """Read one landmark given as an object, mapping or sequence."""
    if isinstance(point, dict):
        return (point.get("x", 0.0), point.get("y", 0.0), point.get("z", 0.0) or 0.0)
    if hasattr(point, "x") and hasattr(point, "y"):
        # MediaPipe NormalizedLandmark and similar
        return (point.x, point.y, getattr(point, "z", 0.0) or 0.0)
    values = list(point)
    if len(values) == 2:
        values.append(0.0)
    return values[:3]


def to_landmark_tensor(landmarks: Optional[LandmarkInput],
                       device: Optional[Union[str, torch.device]] = None) -> Optional[torch.Tensor]:
    """
    Convert a landmark frame to a float32 tensor of shape (N, 3).

    Args:
        landmarks: Tensor, numpy array, or sequence of points. Points may be
                   [x, y(, z)] sequences, {"x", "y", "z"} mappings or objects
                   with x/y/z attributes.
        device: Target device; defaults to the input tensor's device or CPU

    Returns:
        Landmarks tensor (N, 3), or None if the input cannot be read
    """
    if landmarks is None:
        return None

    try:
        if isinstance(landmarks, torch.Tensor):
            tensor = landmarks.detach().float()
        elif isinstance(landmarks, np.ndarray):
            tensor = torch.from_numpy(np.ascontiguousarray(landmarks, dtype=np.float32))
        else:
            points = [_point_to_xyz(p) for p in landmarks]
            tensor = torch.tensor(points, dtype=torch.float32)
    except (TypeError, ValueError):
        return None

    if tensor.dim() != 2 or tensor.shape[1] < 2:
        return None

    # Missing depth column is treated as zero depth
    if tensor.shape[1] == 2:
        tensor = torch.cat([tensor, torch.zeros(tensor.shape[0], 1, dtype=tensor.dtype, device=tensor.device)], dim=1)
    elif tensor.shape[1] > 3:
        tensor = tensor[:, :3]

    if device is not None:
        tensor = tensor.to(device)
    return tensor


def is_valid_frame(landmarks: Optional[torch.Tensor]) -> bool:
    """
    A frame is usable only when all 468 face points are present and finite.
    Anything else is treated as "no face".
    """
    if landmarks is None or not isinstance(landmarks, torch.Tensor):
        return False
    if landmarks.dim() != 2 or landmarks.shape[0] < NUM_FACE_LANDMARKS or landmarks.shape[1] < 3:
        return False
    return bool(torch.isfinite(landmarks[:, :3]).all())


def has_iris(landmarks: torch.Tensor) -> bool:
    """True for refined frames that carry the 10 iris points (468-477)."""
    if landmarks.shape[0] < NUM_REFINED_LANDMARKS:
        return False
    return bool(torch.isfinite(landmarks[NUM_FACE_LANDMARKS:NUM_REFINED_LANDMARKS]).all())


def prepare_frame(landmarks: Optional[LandmarkInput]) -> Optional[torch.Tensor]:
    """Convert and validate in one step; None means "no face"."""
    tensor = to_landmark_tensor(landmarks)
    return tensor if is_valid_frame(tensor) else None
