"""Tunable configuration for expression mapping, pose estimation and stabilization."""

import json
import logging
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

NO_FACE_POLICIES = ("hide", "freeze")


@dataclass
class SensitivityConfig:
    """Per-channel multipliers applied by the expression mapper."""

    # Eyes, tuned per side for asymmetric faces or camera angles
    eye_blink_left: float = 1.5
    eye_blink_right: float = 1.5
    eye_wide_left: float = 0.5
    eye_wide_right: float = 1.0
    eye_look_horizontal: float = 4.0
    eye_look_vertical: float = 3.0

    # Brows
    brow_inner_up: float = 25.0
    brow_outer_up: float = 25.0
    brow_down: float = 20.0

    # Mouth
    mouth_smile: float = 10.0
    mouth_frown: float = 10.0
    mouth_stretch: float = 3.0
    mouth_pucker: float = 3.0
    mouth_shift: float = 20.0
    mouth_close: float = 10.0

    # Jaw
    jaw_open: float = 3.0
    jaw_shift: float = 20.0
    jaw_forward: float = 10.0

    # Cheeks / nose
    cheek_puff: float = 12.0
    cheek_puff_from_smile: float = 0.7
    cheek_puff_baseline: float = 3.6
    cheek_squint: float = 15.0
    nose_sneer: float = 15.0

    # Lip detail heuristics (upper-up, lower-down, roll, press)
    upper_lip_raise: float = 30.0
    lip_detail: float = 25.0
    lip_roll: float = 80.0
    lip_press: float = 100.0


@dataclass
class PoseConfig:
    """Weights for the multi-point head pose fusion."""

    scale_normalization: float = 10.0
    reference_eye_distance: float = 0.18
    depth_gain: float = 10.0
    yaw_depth_weight: float = 4.0
    yaw_offset_weight: float = 3.0
    pitch_ratio_weight: float = 2.0
    pitch_depth_weight: float = 5.0
    neutral_span_ratio: float = 0.8
    span_epsilon: float = 0.001
    # Bound on the upper/lower span ratio for collapsed or inverted faces
    max_span_ratio: float = 5.0


@dataclass
class SmoothingConfig:
    """
    Exponential smoothing factors per field family, in [0, 1).
    0 = follow the target immediately, closer to 1 = heavier smoothing.
    """

    position: float = 0.6
    rotation: float = 0.6
    scale: float = 0.7
    expression: float = 0.4
    eye_blink: float = 0.1

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0.0 <= value < 1.0:
                raise ValueError(f"smoothing.{f.name} must be in [0, 1), got {value}")


@dataclass
class DeadzoneConfig:
    """Minimum change per field family below which an update is ignored."""

    position: float = 0.01
    rotation: float = 0.01
    scale: float = 0.01
    expression: float = 0.02

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0.0:
                raise ValueError(f"deadzone.{f.name} must be >= 0, got {value}")


@dataclass
class SceneConfig:
    """Mapping from the normalized pose into target-scene coordinates."""

    # Camera (perspective, looking down -z)
    fov: float = 50.0  # vertical field of view, degrees
    aspect: float = 16.0 / 9.0
    camera_z: float = 3.0
    near_plane: float = 0.1

    # Position
    model_z: float = 0.0
    depth_scale: float = 0.5
    position_scale_x: float = 1.0
    position_scale_y: float = 1.0

    # Rotation gains and per-model base offsets (radians)
    yaw_scale: float = 1.5
    pitch_scale: float = 1.0
    roll_scale: float = 1.0
    base_yaw: float = 0.0
    base_pitch: float = 0.0
    base_roll: float = 0.0

    # Scale
    scale_base: float = 0.0
    scale_multiplier: float = 0.55
    scale_min: float = 0.5
    scale_max: float = 2.0
    scale_axes: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    # Front-facing camera framing
    mirror_x: bool = True

    # What happens to the node while no face is tracked: "hide" or "freeze"
    no_face_policy: str = "hide"

    # Advance one extra smoothing step on every render tick
    step_on_render: bool = False

    def validate(self) -> None:
        if self.no_face_policy not in NO_FACE_POLICIES:
            raise ValueError(f"scene.no_face_policy must be one of {NO_FACE_POLICIES}, got {self.no_face_policy!r}")
        if self.scale_min > self.scale_max:
            raise ValueError(f"scene.scale_min ({self.scale_min}) exceeds scene.scale_max ({self.scale_max})")
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"scene.fov must be in (0, 180) degrees, got {self.fov}")


@dataclass
class MappingConfig:
    """
    All tunables of the pipeline.

    Components keep a reference to this object and read fields at call
    time, so it can be live-tuned without restarting anything.
    """

    sensitivity: SensitivityConfig = field(default_factory=SensitivityConfig)
    pose: PoseConfig = field(default_factory=PoseConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    deadzone: DeadzoneConfig = field(default_factory=DeadzoneConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)

    def validate(self) -> None:
        """Raise ValueError if any section holds an unusable value."""
        self.smoothing.validate()
        self.deadzone.validate()
        self.scene.validate()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["scene"]["scale_axes"] = list(self.scene.scale_axes)
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MappingConfig":
        """
        Build a config from nested section dicts.

        Unknown keys are ignored, values that cannot be coerced to the
        field's type fall back to the default, and sections that fail
        validation are reset to their defaults.
        """
        config = cls()
        for f in fields(cls):
            section_raw = raw.get(f.name)
            if not isinstance(section_raw, dict):
                continue
            section = _parse_section(getattr(config, f.name), section_raw, f.name)
            validate = getattr(section, "validate", None)
            if validate is not None:
                try:
                    validate()
                except ValueError as e:
                    logger.warning("Invalid %s config (%s), using defaults", f.name, e)
                    section = type(section)()
            setattr(config, f.name, section)
        return config


def _as_float(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return float(default)


def _as_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(default)


def _as_axes(v: Any, default: Tuple[float, float, float]) -> Tuple[float, float, float]:
    if isinstance(v, (list, tuple)) and len(v) == 3:
        return tuple(_as_float(item, d) for item, d in zip(v, default))
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return (float(v), float(v), float(v))
    return default


def _parse_section(defaults: Any, raw: Dict[str, Any], section_name: str) -> Any:
    values: Dict[str, Any] = {}
    for f in fields(defaults):
        if f.name not in raw:
            continue
        default = getattr(defaults, f.name)
        value = raw[f.name]
        if isinstance(default, bool):
            values[f.name] = _as_bool(value, default)
        elif isinstance(default, float):
            values[f.name] = _as_float(value, default)
        elif isinstance(default, tuple):
            values[f.name] = _as_axes(value, default)
        else:
            values[f.name] = str(value) if value is not None else default
    unknown = set(raw) - {f.name for f in fields(defaults)}
    if unknown:
        logger.debug("Ignoring unknown %s config keys: %s", section_name, sorted(unknown))
    return type(defaults)(**values)


def load_config(path: Optional[Union[str, Path]] = None) -> MappingConfig:
    """
    Load a MappingConfig from a JSON file.

    A missing path or file yields the defaults; malformed JSON yields the
    defaults with a warning so the overlay keeps running.
    """
    if path is None:
        return MappingConfig()
    p = Path(path).expanduser()
    if not p.exists():
        logger.info("Config file %s not found, using defaults", p)
        return MappingConfig()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read config %s (%s), using defaults", p, e)
        return MappingConfig()
    if not isinstance(raw, dict):
        logger.warning("Config %s is not a JSON object, using defaults", p)
        return MappingConfig()
    return MappingConfig.from_dict(raw)


def save_config(config: MappingConfig, path: Union[str, Path]) -> None:
    """Write a MappingConfig to a JSON file."""
    Path(path).write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
