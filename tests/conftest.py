"""Shared fixtures: a synthetic neutral face and helpers to deform it."""

import math
from typing import Dict, Tuple

import pytest
import torch

from facemimic.core.config import MappingConfig
from facemimic.scene.headless_node import HeadlessSceneNode

# Neutral reference face in normalized image space (x right, y down).
# Measurements: eye heights 0.01, mouth 0.01 x 0.12, eye distance 0.18,
# brow offsets and jaw depth equal to the built-in baseline.
NEUTRAL_POINTS: Dict[int, Tuple[float, float, float]] = {
    # Face structure
    10: (0.50, 0.30, -0.02),   # forehead
    6: (0.50, 0.42, -0.05),    # nose bridge
    168: (0.50, 0.41, -0.045),  # top of nose
    1: (0.50, 0.50, -0.08),    # nose tip
    2: (0.50, 0.53, -0.06),    # nose base
    152: (0.50, 0.70, -0.02),  # chin

    # Eye corners
    33: (0.41, 0.43, -0.01),
    133: (0.46, 0.43, -0.02),
    362: (0.54, 0.43, -0.02),
    263: (0.59, 0.43, -0.01),

    # Eyelids
    160: (0.425, 0.425, -0.02), 159: (0.435, 0.425, -0.02), 158: (0.445, 0.425, -0.02),
    144: (0.425, 0.435, -0.02), 145: (0.435, 0.435, -0.02), 153: (0.445, 0.435, -0.02),
    385: (0.555, 0.425, -0.02), 386: (0.565, 0.425, -0.02), 387: (0.575, 0.425, -0.02),
    373: (0.575, 0.435, -0.02), 374: (0.565, 0.435, -0.02), 380: (0.555, 0.435, -0.02),

    # Mouth
    61: (0.44, 0.60, -0.03),
    291: (0.56, 0.60, -0.03),
    13: (0.50, 0.595, -0.04),
    14: (0.50, 0.605, -0.04),
    0: (0.50, 0.585, -0.045),
    17: (0.50, 0.615, -0.045),
    39: (0.47, 0.585, -0.04), 269: (0.53, 0.585, -0.04),
    40: (0.46, 0.588, -0.04), 270: (0.54, 0.588, -0.04),
    80: (0.46, 0.596, -0.04), 310: (0.54, 0.596, -0.04),
    91: (0.46, 0.612, -0.04), 321: (0.54, 0.612, -0.04),
    88: (0.46, 0.604, -0.04), 318: (0.54, 0.604, -0.04),

    # Brows
    107: (0.47, 0.385, -0.03), 336: (0.53, 0.385, -0.03),
    70: (0.40, 0.39, -0.02), 300: (0.60, 0.39, -0.02),

    # Cheeks and nose wings
    117: (0.40, 0.47, -0.01), 346: (0.60, 0.47, -0.01),
    123: (0.40, 0.50, -0.01), 352: (0.60, 0.50, -0.01),
    98: (0.47, 0.52, -0.05), 327: (0.53, 0.52, -0.05),
}

IRIS_POINTS = {
    468: (0.435, 0.43, -0.02),
    473: (0.565, 0.43, -0.02),
}

LEFT_UPPER_LID = (160, 159, 158)
LEFT_LOWER_LID = (144, 145, 153)
RIGHT_UPPER_LID = (385, 386, 387)
RIGHT_LOWER_LID = (373, 374, 380)


def make_face(refined: bool = False) -> torch.Tensor:
    """Neutral face as a (468, 3) or (478, 3) float32 tensor."""
    count = 478 if refined else 468
    frame = torch.tensor([[0.5, 0.5, 0.0]] * count, dtype=torch.float32)
    points = dict(NEUTRAL_POINTS)
    if refined:
        points.update(IRIS_POINTS)
    for idx, xyz in points.items():
        frame[idx] = torch.tensor(xyz)
    return frame


def set_eye_height(frame: torch.Tensor, height: float, side: str = "left") -> torch.Tensor:
    """Move the lower lid so the lid separation equals height."""
    frame = frame.clone()
    upper, lower = (LEFT_UPPER_LID, LEFT_LOWER_LID) if side == "left" else (RIGHT_UPPER_LID, RIGHT_LOWER_LID)
    for u, l in zip(upper, lower):
        frame[l, 1] = frame[u, 1] + height
    return frame


def open_mouth(frame: torch.Tensor, height: float) -> torch.Tensor:
    """Set the inner-lip separation."""
    frame = frame.clone()
    frame[14, 1] = frame[13, 1] + height
    return frame


def lift_corners(frame: torch.Tensor, dy: float) -> torch.Tensor:
    """Raise (dy > 0) or lower (dy < 0) both mouth corners."""
    frame = frame.clone()
    frame[[61, 291], 1] -= dy
    return frame


def translate(frame: torch.Tensor, dx: float = 0.0, dy: float = 0.0) -> torch.Tensor:
    frame = frame.clone()
    frame[:, 0] += dx
    frame[:, 1] += dy
    return frame


def roll_face(frame: torch.Tensor, angle: float) -> torch.Tensor:
    """Rotate the face in the image plane about the nose bridge."""
    frame = frame.clone()
    cx, cy = frame[6, 0].item(), frame[6, 1].item()
    c, s = math.cos(angle), math.sin(angle)
    x = frame[:, 0] - cx
    y = frame[:, 1] - cy
    frame[:, 0] = cx + x * c - y * s
    frame[:, 1] = cy + x * s + y * c
    return frame


@pytest.fixture
def face() -> torch.Tensor:
    return make_face()


@pytest.fixture
def refined_face() -> torch.Tensor:
    return make_face(refined=True)


@pytest.fixture
def config() -> MappingConfig:
    return MappingConfig()


@pytest.fixture
def node() -> HeadlessSceneNode:
    return HeadlessSceneNode()
