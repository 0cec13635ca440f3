"""Face landmark to ARKit-style expression coefficient mapper."""

import logging
from typing import Dict, Optional
import torch

from ..core.base_mapper import BaseLandmarkMapper
from ..core.config import MappingConfig, SensitivityConfig
from ..core.constants import EPSILON, EXPRESSION_CHANNELS, LANDMARK_POINTS
from ..core.landmarks import LandmarkInput, has_iris, prepare_frame
from ..core.types import Baseline, ExpressionMap, default_expressions

logger = logging.getLogger(__name__)

P = LANDMARK_POINTS

# Resting lip measurements used by the lip-detail heuristics
UPPER_LIP_REST_HEIGHT = 0.005
LIP_ROLL_THICKNESS = 0.008
LIP_PRESS_GAP = 0.005

# Jaw opening past which the tongue is assumed to be out
TONGUE_JAW_THRESHOLD = 0.6

# Eye height is roughly 0.6 of eye width; used to normalize vertical gaze
EYE_HEIGHT_TO_WIDTH = 0.6


def clamp01(value: float) -> float:
    """Clamp to [0, 1]; NaN maps to 0 so it can never reach the scene."""
    if value != value:
        return 0.0
    return min(max(value, 0.0), 1.0)


def safe_div(numerator: float, denominator: float) -> float:
    return numerator / max(denominator, EPSILON)


def _average_gap(landmarks: torch.Tensor, upper: list, lower: list) -> float:
    """Average vertical separation of paired upper/lower points."""
    return torch.abs(landmarks[upper, 1] - landmarks[lower, 1]).mean().item()


def _measure(landmarks: torch.Tensor) -> Dict[str, float]:
    """
    Primary measurements shared by calibration and expression mapping.

    Keys match the Baseline fields, so a neutral frame's measurements
    are its baseline.
    """
    forehead = landmarks[P["forehead"]]
    bridge = landmarks[P["nose_bridge"]]
    chin = landmarks[P["chin"]]
    upper_lip = landmarks[P["upper_lip_inner"]]
    lower_lip = landmarks[P["lower_lip_inner"]]
    left_corner = landmarks[P["mouth_left"]]
    right_corner = landmarks[P["mouth_right"]]

    # Brow heights are read against the forehead-nosebridge midline
    brow_reference_y = (forehead[1] + bridge[1]) / 2

    return {
        "left_eye_height": _average_gap(landmarks, P["left_eye_upper"], P["left_eye_lower"]),
        "right_eye_height": _average_gap(landmarks, P["right_eye_upper"], P["right_eye_lower"]),
        "mouth_height": torch.abs(lower_lip[1] - upper_lip[1]).item(),
        "mouth_width": torch.abs(right_corner[0] - left_corner[0]).item(),
        "face_height": torch.abs(chin[1] - forehead[1]).item(),
        # Corner height above the upper inner lip (y grows downwards)
        "left_corner_elevation": (upper_lip[1] - left_corner[1]).item(),
        "right_corner_elevation": (upper_lip[1] - right_corner[1]).item(),
        "brow_inner_left": (brow_reference_y - landmarks[P["brow_inner_left"], 1]).item(),
        "brow_inner_right": (brow_reference_y - landmarks[P["brow_inner_right"], 1]).item(),
        "brow_outer_left": (brow_reference_y - landmarks[P["brow_outer_left"], 1]).item(),
        "brow_outer_right": (brow_reference_y - landmarks[P["brow_outer_right"], 1]).item(),
        "jaw_depth": (bridge[2] - chin[2]).item(),
    }


def measure_baseline(landmarks: Optional[LandmarkInput]) -> Optional[Baseline]:
    """
    Capture a Baseline from a neutral-expression frame.

    Returns:
        Baseline, or None if the frame is absent or malformed
    """
    frame = prepare_frame(landmarks)
    if frame is None:
        return None
    return Baseline(**_measure(frame))


def _eye_channels(m: Dict[str, float], baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    """Blink/wide from lid separation relative to the neutral lid separation."""
    left_ratio = safe_div(m["left_eye_height"], baseline.left_eye_height)
    right_ratio = safe_div(m["right_eye_height"], baseline.right_eye_height)

    return {
        "eyeBlinkLeft": clamp01((1 - left_ratio) * s.eye_blink_left),
        "eyeBlinkRight": clamp01((1 - right_ratio) * s.eye_blink_right),
        "eyeWideLeft": clamp01((left_ratio - 1) * s.eye_wide_left),
        "eyeWideRight": clamp01((right_ratio - 1) * s.eye_wide_right),
    }


def _gaze_channels(landmarks: torch.Tensor, s: SensitivityConfig) -> ExpressionMap:
    """
    Eye look directions from the iris centres (refined frames only).
    Plain 468-point frames leave the look channels at 0.
    """
    if not has_iris(landmarks):
        return {}

    result = {}
    sides = (
        ("Left", P["left_iris_center"], P["left_eye_outer"], P["left_eye_inner"], 1.0),
        ("Right", P["right_iris_center"], P["right_eye_outer"], P["right_eye_inner"], -1.0),
    )
    for side, iris_idx, outer_idx, inner_idx, nose_direction in sides:
        iris = landmarks[iris_idx]
        outer = landmarks[outer_idx]
        inner = landmarks[inner_idx]
        center = (outer + inner) / 2
        eye_width = torch.norm(outer[:2] - inner[:2]).item()

        dx = safe_div((iris[0] - center[0]).item(), eye_width) * s.eye_look_horizontal
        dy = safe_div((iris[1] - center[1]).item(), eye_width * EYE_HEIGHT_TO_WIDTH) * s.eye_look_vertical

        # Image-left eye looks inward (towards the nose) along +x, image-right along -x
        inward = dx * nose_direction
        result[f"eyeLookIn{side}"] = clamp01(inward)
        result[f"eyeLookOut{side}"] = clamp01(-inward)
        result[f"eyeLookUp{side}"] = clamp01(-dy)
        result[f"eyeLookDown{side}"] = clamp01(dy)
    return result


def _jaw_channels(landmarks: torch.Tensor, m: Dict[str, float],
                  baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    jaw_open = safe_div(m["mouth_height"], baseline.mouth_height * s.jaw_open)

    # Lateral jaw shift: chin against the top of the nose
    jaw_offset = (landmarks[P["chin"], 0] - landmarks[P["nose_top"], 0]).item()

    return {
        "jawOpen": clamp01(jaw_open),
        "jawLeft": clamp01(-jaw_offset * s.jaw_shift),
        "jawRight": clamp01(jaw_offset * s.jaw_shift),
        "jawForward": clamp01((m["jaw_depth"] - baseline.jaw_depth) * s.jaw_forward),
    }


def _mouth_channels(landmarks: torch.Tensor, m: Dict[str, float],
                    baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    # Signed corner lift relative to neutral: positive = smile, negative = frown
    left_lift = m["left_corner_elevation"] - baseline.left_corner_elevation
    right_lift = m["right_corner_elevation"] - baseline.right_corner_elevation

    width_ratio = safe_div(m["mouth_width"], baseline.mouth_width)
    stretch = clamp01((width_ratio - 1) * s.mouth_stretch)

    # Mouth left/right shift: corner midpoint against the nose base
    left_corner = landmarks[P["mouth_left"]]
    right_corner = landmarks[P["mouth_right"]]
    mouth_center_x = ((left_corner[0] + right_corner[0]) / 2).item()
    shift = (mouth_center_x - landmarks[P["nose_base"], 0].item()) * s.mouth_shift

    return {
        "mouthSmileLeft": clamp01(left_lift * s.mouth_smile),
        "mouthSmileRight": clamp01(right_lift * s.mouth_smile),
        "mouthFrownLeft": clamp01(-left_lift * s.mouth_frown),
        "mouthFrownRight": clamp01(-right_lift * s.mouth_frown),
        "mouthStretchLeft": stretch,
        "mouthStretchRight": stretch,
        "mouthPucker": clamp01((1 - width_ratio) * s.mouth_pucker),
        "mouthLeft": clamp01(-shift),
        "mouthRight": clamp01(shift),
    }


def _brow_channels(m: Dict[str, float], baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    # Positive delta = brow higher than at rest
    inner_left = m["brow_inner_left"] - baseline.brow_inner_left
    inner_right = m["brow_inner_right"] - baseline.brow_inner_right
    outer_left = m["brow_outer_left"] - baseline.brow_outer_left
    outer_right = m["brow_outer_right"] - baseline.brow_outer_right

    return {
        "browInnerUp": clamp01((inner_left + inner_right) * s.brow_inner_up),
        "browOuterUpLeft": clamp01(outer_left * s.brow_outer_up),
        "browOuterUpRight": clamp01(outer_right * s.brow_outer_up),
        "browDownLeft": clamp01(-inner_left * s.brow_down),
        "browDownRight": clamp01(-inner_right * s.brow_down),
    }


def _extended_channels(landmarks: torch.Tensor, primary: ExpressionMap, m: Dict[str, float],
                       baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    """
    Channels the landmark set has no direct signal for.

    These are deliberate approximations built from the primary channels
    plus a few extra distances; the weights are tuning choices.
    """
    def y(name: str) -> float:
        return landmarks[P[name], 1].item()

    def x(name: str) -> float:
        return landmarks[P[name], 0].item()

    # Eye squint follows blink and smile
    eye_squint_left = primary["eyeBlinkLeft"] * 0.5 + primary["mouthSmileLeft"] * 0.5
    eye_squint_right = primary["eyeBlinkRight"] * 0.5 + primary["mouthSmileRight"] * 0.5

    # Cheek squint: lower lid rising towards the upper cheek
    cheek_squint_left = (y("left_lower_lid") - y("left_upper_cheek")) * s.cheek_squint
    cheek_squint_right = (y("right_lower_lid") - y("right_upper_cheek")) * s.cheek_squint

    # Cheek puff: cheek/nose width ratio above rest, plus smile, minus raised brows
    cheek_width = abs(x("left_cheek") - x("right_cheek"))
    nose_width = abs(x("nose_left") - x("nose_right"))
    puff_from_width = clamp01((safe_div(cheek_width, nose_width) - s.cheek_puff_baseline) * s.cheek_puff)
    avg_smile = (primary["mouthSmileLeft"] + primary["mouthSmileRight"]) / 2
    cheek_puff = puff_from_width + avg_smile * s.cheek_puff_from_smile - primary["browInnerUp"]

    # Nose sneer: upper lip lifting towards the nose base
    nose_sneer_left = (y("nose_base") - y("upper_lip_left")) * s.nose_sneer
    nose_sneer_right = (y("nose_base") - y("upper_lip_right")) * s.nose_sneer

    # Lip thickness signals
    upper_lip_thickness = abs(y("upper_lip_outer") - y("upper_lip_inner"))
    lower_lip_thickness = abs(y("lower_lip_outer") - y("lower_lip_inner"))
    inner_gap = abs(y("upper_lip_inner") - y("lower_lip_inner"))
    upper_lip_up = clamp01((upper_lip_thickness - UPPER_LIP_REST_HEIGHT) * s.upper_lip_raise)

    mouth_press = clamp01((LIP_PRESS_GAP - inner_gap) * s.lip_press)

    # Lips held together while the chin drops below its neutral height
    jaw_drop = clamp01((safe_div(m["face_height"], baseline.face_height) - 1) * s.mouth_close)

    jaw_open = primary["jawOpen"]
    tongue_out = 0.0
    if jaw_open > TONGUE_JAW_THRESHOLD:
        tongue_out = (jaw_open - TONGUE_JAW_THRESHOLD) * 2 * (1 - primary["mouthPucker"])

    return {
        "eyeSquintLeft": clamp01(eye_squint_left),
        "eyeSquintRight": clamp01(eye_squint_right),
        "cheekSquintLeft": clamp01(cheek_squint_left),
        "cheekSquintRight": clamp01(cheek_squint_right),
        "cheekPuff": clamp01(cheek_puff),
        "noseSneerLeft": clamp01(nose_sneer_left),
        "noseSneerRight": clamp01(nose_sneer_right),
        "mouthFunnel": clamp01(primary["mouthPucker"] * 0.6 + jaw_open * 0.4),
        "mouthClose": clamp01(jaw_drop * mouth_press),
        "mouthDimpleLeft": clamp01(primary["mouthSmileLeft"] * 0.4),
        "mouthDimpleRight": clamp01(primary["mouthSmileRight"] * 0.4),
        "mouthUpperUpLeft": clamp01(abs(y("upper_outer_left") - y("upper_inner_left")) * s.lip_detail),
        "mouthUpperUpRight": clamp01(abs(y("upper_outer_right") - y("upper_inner_right")) * s.lip_detail),
        "mouthLowerDownLeft": clamp01(abs(y("lower_outer_left") - y("lower_inner_left")) * s.lip_detail),
        "mouthLowerDownRight": clamp01(abs(y("lower_outer_right") - y("lower_inner_right")) * s.lip_detail),
        "mouthRollUpper": clamp01((LIP_ROLL_THICKNESS - upper_lip_thickness) * s.lip_roll),
        "mouthRollLower": clamp01((LIP_ROLL_THICKNESS - lower_lip_thickness) * s.lip_roll),
        "mouthShrugUpper": clamp01(upper_lip_up * 0.6),
        "mouthShrugLower": clamp01(jaw_open * 0.3),
        "mouthPressLeft": clamp01(mouth_press * 0.8),
        "mouthPressRight": clamp01(mouth_press * 0.8),
        "tongueOut": clamp01(tongue_out),
    }


def _compute(landmarks: torch.Tensor, baseline: Baseline, s: SensitivityConfig) -> ExpressionMap:
    m = _measure(landmarks)

    values = default_expressions()
    values.update(_eye_channels(m, baseline, s))
    values.update(_gaze_channels(landmarks, s))
    values.update(_jaw_channels(landmarks, m, baseline, s))
    values.update(_mouth_channels(landmarks, m, baseline, s))
    values.update(_brow_channels(m, baseline, s))
    values.update(_extended_channels(landmarks, values, m, baseline, s))

    # Final clamp also fixes the key set and order
    return {name: clamp01(values[name]) for name in EXPRESSION_CHANNELS}


def compute_expressions(landmarks: Optional[LandmarkInput],
                        baseline: Optional[Baseline] = None,
                        config: Optional[MappingConfig] = None) -> ExpressionMap:
    """
    Map one landmark frame to expression coefficients.

    Args:
        landmarks: 468/478-point frame (tensor, array or sequence of points)
        baseline: Neutral measurements; built-in defaults when None
        config: Tunables; defaults when None

    Returns:
        Every channel of EXPRESSION_CHANNELS with a value in [0, 1]. An
        absent, short or non-finite frame yields the all-zero map.
    """
    frame = prepare_frame(landmarks)
    if frame is None:
        return default_expressions()
    sensitivity = (config if config is not None else MappingConfig()).sensitivity
    return _compute(frame, baseline if baseline is not None else Baseline.default(), sensitivity)


class ExpressionMapper(BaseLandmarkMapper):
    """
    Maps 468/478 facial landmarks from MediaPipe to ARKit-style expression channels.

    Each mapper owns its Baseline, so independent pipelines (or tests)
    never share calibration. The baseline changes only through
    `calibrate` and `reset_baseline`.
    """

    def __init__(self, config: Optional[MappingConfig] = None, baseline: Optional[Baseline] = None):
        """
        Initialize the expression mapper.

        Args:
            config: Shared tunables (sensitivity section is used)
            baseline: Pre-calibrated baseline; built-in defaults when None
        """
        super().__init__(config)
        self.baseline = baseline if baseline is not None else Baseline.default()
        self.calibrated = baseline is not None

    def _map_single(self, landmarks: torch.Tensor) -> ExpressionMap:
        return _compute(landmarks, self.baseline, self.config.sensitivity)

    def default_output(self) -> ExpressionMap:
        return default_expressions()

    def calibrate(self, landmarks: Optional[LandmarkInput]) -> bool:
        """
        Capture the neutral baseline from the given frame.

        Returns:
            True if the baseline was replaced, False for an unusable frame
        """
        baseline = measure_baseline(landmarks)
        if baseline is None:
            logger.warning("Calibration skipped: frame has no usable face")
            return False
        self.baseline = baseline
        self.calibrated = True
        logger.info("Expression baseline calibrated (eyes %.4f/%.4f, mouth %.4fx%.4f)",
                    baseline.left_eye_height, baseline.right_eye_height,
                    baseline.mouth_width, baseline.mouth_height)
        return True

    def reset_baseline(self) -> None:
        """Return to the built-in baseline (e.g. when the tracked subject changes)."""
        self.baseline = Baseline.default()
        self.calibrated = False
