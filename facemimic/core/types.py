"""Type definitions for expression maps, poses and stabilizer state."""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Tuple

from .constants import EXPRESSION_CHANNELS, DEFAULT_BASELINE, ROTATION_ORDER

# Channel name -> coefficient in [0, 1]
ExpressionMap = Dict[str, float]


def default_expressions() -> ExpressionMap:
    """Neutral expression map: every channel present and set to 0."""
    return {name: 0.0 for name in EXPRESSION_CHANNELS}


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class Rotation:
    """Head rotation in radians."""

    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        """Return (pitch, yaw, roll), i.e. rotation about x, y, z."""
        return (self.pitch, self.yaw, self.roll)


@dataclass
class PoseTransform:
    """
    Head pose in a normalized, camera-relative frame.

    Position x/y are in [-1, 1] (NDC-like, y up), z is a depth proxy
    derived from the face scale (positive = closer to the camera).
    Scale is the normalized inter-ocular distance.
    """

    position: Vector3 = field(default_factory=Vector3)
    rotation: Rotation = field(default_factory=Rotation)
    scale: float = 0.0

    @classmethod
    def neutral(cls, scale: float = 1.8) -> "PoseTransform":
        """Centered, unrotated pose at the reference scale."""
        return cls(position=Vector3(), rotation=Rotation(), scale=scale)

    def clone(self) -> "PoseTransform":
        return PoseTransform(
            position=Vector3(*self.position.as_tuple()),
            rotation=Rotation(*self.rotation.as_tuple()),
            scale=self.scale,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SceneTransform:
    """Pose expressed in target-scene units, ready to write to a node."""

    position: Vector3 = field(default_factory=Vector3)
    rotation: Rotation = field(default_factory=Rotation)
    scale: float = 1.0
    rotation_order: str = ROTATION_ORDER

    def clone(self) -> "SceneTransform":
        return SceneTransform(
            position=Vector3(*self.position.as_tuple()),
            rotation=Rotation(*self.rotation.as_tuple()),
            scale=self.scale,
            rotation_order=self.rotation_order,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Baseline:
    """
    Neutral-expression measurements used as the zero point for ratio
    based channels. Immutable; calibration produces a new instance.
    """

    left_eye_height: float
    right_eye_height: float
    mouth_height: float
    mouth_width: float
    face_height: float
    left_corner_elevation: float
    right_corner_elevation: float
    brow_inner_left: float
    brow_inner_right: float
    brow_outer_left: float
    brow_outer_right: float
    jaw_depth: float

    @classmethod
    def default(cls) -> "Baseline":
        """Built-in constants for an uncalibrated subject."""
        return cls(**DEFAULT_BASELINE)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class StabilizedState:
    """
    Smoothed output owned by the Stabilizer.

    `seeded` is False until the first target after start or subject loss
    has been snapped in.
    """

    transform: SceneTransform = field(default_factory=SceneTransform)
    expressions: ExpressionMap = field(default_factory=default_expressions)
    seeded: bool = False

    @classmethod
    def create_default(cls) -> "StabilizedState":
        return cls()

    def clone(self) -> "StabilizedState":
        return StabilizedState(
            transform=self.transform.clone(),
            expressions=dict(self.expressions),
            seeded=self.seeded,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transform": self.transform.to_dict(),
            "expressions": dict(self.expressions),
            "seeded": self.seeded,
        }
