"""Constants and default values for expression channels and landmark geometry."""

# Guard added to every denominator before dividing
EPSILON = 1e-6

# MediaPipe Face Mesh: 468 face points, 478 with refined iris points
NUM_FACE_LANDMARKS = 468
NUM_REFINED_LANDMARKS = 478

# ARKit-compatible expression channel names. These double as the morph
# target names authored on the character assets.
EYE_CHANNELS = (
    "eyeBlinkLeft",
    "eyeBlinkRight",
    "eyeWideLeft",
    "eyeWideRight",
    "eyeSquintLeft",
    "eyeSquintRight",
    "eyeLookUpLeft",
    "eyeLookUpRight",
    "eyeLookDownLeft",
    "eyeLookDownRight",
    "eyeLookInLeft",
    "eyeLookInRight",
    "eyeLookOutLeft",
    "eyeLookOutRight",
)

JAW_CHANNELS = (
    "jawOpen",
    "jawLeft",
    "jawRight",
    "jawForward",
)

MOUTH_CHANNELS = (
    "mouthSmileLeft",
    "mouthSmileRight",
    "mouthFrownLeft",
    "mouthFrownRight",
    "mouthStretchLeft",
    "mouthStretchRight",
    "mouthPucker",
    "mouthFunnel",
    "mouthClose",
    "mouthLeft",
    "mouthRight",
    "mouthDimpleLeft",
    "mouthDimpleRight",
    "mouthUpperUpLeft",
    "mouthUpperUpRight",
    "mouthLowerDownLeft",
    "mouthLowerDownRight",
    "mouthRollUpper",
    "mouthRollLower",
    "mouthShrugUpper",
    "mouthShrugLower",
    "mouthPressLeft",
    "mouthPressRight",
)

BROW_CHANNELS = (
    "browInnerUp",
    "browOuterUpLeft",
    "browOuterUpRight",
    "browDownLeft",
    "browDownRight",
)

CHEEK_NOSE_CHANNELS = (
    "cheekPuff",
    "cheekSquintLeft",
    "cheekSquintRight",
    "noseSneerLeft",
    "noseSneerRight",
    "tongueOut",
)

EXPRESSION_CHANNELS = (
    EYE_CHANNELS
    + JAW_CHANNELS
    + MOUTH_CHANNELS
    + BROW_CHANNELS
    + CHEEK_NOSE_CHANNELS
)

# Blink channels get their own (lighter) smoothing to keep blinks snappy
EYE_BLINK_CHANNELS = ("eyeBlinkLeft", "eyeBlinkRight")

# Slots an asset should expose for the overlay to look alive
REQUIRED_MORPH_TARGETS = ("eyeBlinkLeft", "eyeBlinkRight", "jawOpen", "mouthSmileLeft")

# Euler order used for every scene write: yaw, then pitch, then roll
ROTATION_ORDER = "YXZ"

# Built-in neutral measurements used until a neutral frame is calibrated
DEFAULT_BASELINE = {
    "left_eye_height": 0.008,
    "right_eye_height": 0.012,
    "mouth_height": 0.01,
    "mouth_width": 0.15,
    "face_height": 0.35,
    "left_corner_elevation": 0.0,
    "right_corner_elevation": 0.0,
    "brow_inner_left": -0.025,
    "brow_inner_right": -0.025,
    "brow_outer_left": -0.03,
    "brow_outer_right": -0.03,
    "jaw_depth": -0.03,
}

# Specific landmark points for calculations.
# "left"/"right" follow image space (viewer's perspective).
LANDMARK_POINTS = {
    # Face structure
    "nose_tip": 1,
    "nose_base": 2,
    "nose_bridge": 6,
    "nose_top": 168,
    "forehead": 10,
    "chin": 152,

    # Eye corners
    "left_eye_outer": 33,
    "left_eye_inner": 133,
    "right_eye_inner": 362,
    "right_eye_outer": 263,

    # Eyelids, paired upper/lower from inner to outer
    "left_eye_upper": [160, 159, 158],
    "left_eye_lower": [144, 145, 153],
    "right_eye_upper": [385, 386, 387],
    "right_eye_lower": [373, 374, 380],

    # Mouth
    "mouth_left": 61,
    "mouth_right": 291,
    "upper_lip_inner": 13,
    "lower_lip_inner": 14,
    "upper_lip_outer": 0,
    "lower_lip_outer": 17,
    "upper_lip_left": 39,
    "upper_lip_right": 269,
    "upper_outer_left": 40,
    "upper_inner_left": 80,
    "upper_outer_right": 270,
    "upper_inner_right": 310,
    "lower_outer_left": 91,
    "lower_inner_left": 88,
    "lower_outer_right": 321,
    "lower_inner_right": 318,

    # Brows
    "brow_inner_left": 107,
    "brow_inner_right": 336,
    "brow_outer_left": 70,
    "brow_outer_right": 300,

    # Cheeks and nose wings
    "left_lower_lid": 145,
    "left_upper_cheek": 117,
    "right_lower_lid": 374,
    "right_upper_cheek": 346,
    "left_cheek": 123,
    "right_cheek": 352,
    "nose_left": 98,
    "nose_right": 327,

    # Iris centres, only present on refined 478-point frames
    "left_iris_center": 468,
    "right_iris_center": 473,
}

# Landmarks averaged for the left/right depth used by yaw
POSE_LEFT_POINTS = [33, 133, 61]
POSE_RIGHT_POINTS = [263, 362, 291]
