"""Temporal stabilization of expressions and head pose, and scene-space mapping."""

import logging
import math
from typing import Optional, Tuple

from ..core.base_scene_node import BaseSceneNode
from ..core.config import MappingConfig, SceneConfig
from ..core.constants import EYE_BLINK_CHANNELS
from ..core.types import ExpressionMap, PoseTransform, Rotation, SceneTransform, StabilizedState, Vector3

logger = logging.getLogger(__name__)


def stabilize_value(current: float, target: float, smoothing: float, deadzone: float) -> float:
    """
    One deadzone + exponential smoothing step for a scalar.

    Args:
        current: Current smoothed value
        target: Raw target value
        smoothing: Smoothing factor in [0, 1); 0 follows the target immediately.
                   Out-of-range values (e.g. from live tuning) are clamped into [0, 1].
        deadzone: Changes smaller than this leave `current` untouched

    Returns:
        Next smoothed value. Never overshoots the target.
    """
    if not math.isfinite(target):
        return current
    delta = target - current
    if abs(delta) < deadzone:
        return current
    smoothing = min(max(smoothing, 0.0), 1.0)
    return current + delta * (1.0 - smoothing)


def map_to_scene(pose: PoseTransform, scene: SceneConfig) -> SceneTransform:
    """
    Map a normalized PoseTransform into target-scene coordinates.

    Position is scaled by the visible area at the model's resolved depth,
    so the same normalized face offset lands on the same apparent screen
    position for any viewport aspect ratio.

    Args:
        pose: Raw pose from the estimator
        scene: Camera and model placement tunables

    Returns:
        SceneTransform with uniform (clamped) scale
    """
    z = scene.model_z + pose.position.z * scene.depth_scale
    distance = max(scene.camera_z - z, scene.near_plane)
    half_height = distance * math.tan(math.radians(scene.fov) / 2)
    half_width = half_height * scene.aspect

    mirror = -1.0 if scene.mirror_x else 1.0
    x = pose.position.x * half_width * scene.position_scale_x * mirror
    y = pose.position.y * half_height * scene.position_scale_y

    # Base offsets are static per model and never mirrored
    rotation = Rotation(
        pitch=pose.rotation.pitch * scene.pitch_scale + scene.base_pitch,
        yaw=pose.rotation.yaw * scene.yaw_scale * mirror + scene.base_yaw,
        roll=pose.rotation.roll * scene.roll_scale + scene.base_roll,
    )

    scale = scene.scale_base + pose.scale * scene.scale_multiplier
    scale = min(max(scale, scene.scale_min), scene.scale_max)

    return SceneTransform(position=Vector3(x, y, z), rotation=rotation, scale=scale)


class Stabilizer:
    """
    Deadzone + exponential smoothing state machine driving a scene node.

    Unseeded (initial, or after subject loss): the next update snaps the
    state to the target and the node becomes visible on the next write.
    Seeded: every update moves each field one smoothing step toward its
    target. The state is only ever mutated here.
    """

    def __init__(self, config: Optional[MappingConfig] = None):
        """
        Initialize the stabilizer.

        Args:
            config: Shared tunables; referenced, never copied

        Raises:
            ValueError: If smoothing, deadzone or scene settings are out of range
        """
        self.config = config if config is not None else MappingConfig()
        self.config.validate()
        self._state = StabilizedState.create_default()
        self._target_transform: Optional[SceneTransform] = None
        self._target_expressions: Optional[ExpressionMap] = None

    @property
    def state(self) -> StabilizedState:
        """Snapshot of the current smoothed state."""
        return self._state.clone()

    @property
    def is_seeded(self) -> bool:
        return self._state.seeded

    def update(self, expressions: ExpressionMap, pose: PoseTransform) -> StabilizedState:
        """
        Consume one raw frame.

        Args:
            expressions: Raw expression map from the mapper
            pose: Raw pose from the estimator

        Returns:
            Snapshot of the updated state
        """
        self._target_transform = map_to_scene(pose, self.config.scene)
        self._target_expressions = dict(expressions)

        if not self._state.seeded:
            self._snap()
            logger.debug("Stabilizer seeded from first frame")
        else:
            self._step()
        return self.state

    def advance(self) -> None:
        """Take one extra smoothing step toward the last target, if any."""
        if self._state.seeded and self._target_transform is not None:
            self._step()

    def lose_subject(self) -> None:
        """Drop back to Unseeded so the next acquisition re-snaps."""
        if self._state.seeded:
            logger.debug("Stabilizer unseeded (subject lost)")
        self._state.seeded = False
        self._target_transform = None
        self._target_expressions = None

    def reset(self) -> None:
        """Return to the freshly created state."""
        self._state = StabilizedState.create_default()
        self._target_transform = None
        self._target_expressions = None

    def apply(self, node: BaseSceneNode, binding=None) -> bool:
        """
        Write the current state to a scene node.

        While unseeded nothing is written; with the "hide" policy the
        node is hidden, with "freeze" it keeps its last transform.

        Args:
            node: Target scene node
            binding: InfluenceBinding negotiated for this node; when None
                     only the transform is written

        Returns:
            True if the state was written
        """
        scene = self.config.scene
        if not self._state.seeded:
            if scene.no_face_policy == "hide":
                node.set_visible(False)
            return False

        if scene.step_on_render:
            self.advance()

        transform = self._state.transform
        node.set_transform(
            position=transform.position.as_tuple(),
            rotation=transform.rotation.as_tuple(),
            scale=self._scale_vector(transform.scale, scene),
            rotation_order=transform.rotation_order,
        )
        node.set_visible(True)
        if binding is not None:
            binding.write(node, self._state.expressions)
        return True

    @staticmethod
    def _scale_vector(scale: float, scene: SceneConfig) -> Tuple[float, float, float]:
        ax, ay, az = scene.scale_axes
        return (scale * ax, scale * ay, scale * az)

    def _snap(self) -> None:
        expressions = self._state.expressions
        for name in expressions:
            expressions[name] = self._target_expressions.get(name, 0.0)
        self._state.transform = self._target_transform.clone()
        self._state.seeded = True

    def _step(self) -> None:
        smoothing = self.config.smoothing
        deadzone = self.config.deadzone
        current = self._state.transform
        target = self._target_transform

        for attr in ("x", "y", "z"):
            setattr(current.position, attr, stabilize_value(
                getattr(current.position, attr), getattr(target.position, attr),
                smoothing.position, deadzone.position))

        for attr in ("pitch", "yaw", "roll"):
            setattr(current.rotation, attr, stabilize_value(
                getattr(current.rotation, attr), getattr(target.rotation, attr),
                smoothing.rotation, deadzone.rotation))

        current.scale = stabilize_value(current.scale, target.scale, smoothing.scale, deadzone.scale)
        current.rotation_order = target.rotation_order

        expressions = self._state.expressions
        for name, value in expressions.items():
            factor = smoothing.eye_blink if name in EYE_BLINK_CHANNELS else smoothing.expression
            expressions[name] = stabilize_value(
                value, self._target_expressions.get(name, 0.0), factor, deadzone.expression)
