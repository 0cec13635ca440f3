"""Tests for head pose estimation."""

import math

import pytest
import torch

from facemimic.core.config import MappingConfig
from facemimic.core.types import PoseTransform
from facemimic.mappers.pose_estimator import PoseEstimator, compute_pose

from conftest import roll_face, translate


def test_neutral_face_pose(face):
    pose = compute_pose(face)
    assert pose.scale == pytest.approx(1.8, abs=1e-4)
    assert pose.position.x == pytest.approx(0.0, abs=1e-6)
    assert pose.position.y == pytest.approx(0.16, abs=1e-5)
    assert pose.position.z == pytest.approx(0.0, abs=1e-4)
    assert pose.rotation.yaw == pytest.approx(0.0, abs=1e-6)
    assert pose.rotation.roll == pytest.approx(0.0, abs=1e-6)


def test_pitch_fuses_span_ratio_and_nose_depth(face):
    pose = compute_pose(face)
    ratio = 0.12 / (0.28 + 0.001)
    expected = -((ratio - 0.8) * 2 + (-0.08 + 0.05) * 5)
    assert pose.rotation.pitch == pytest.approx(expected, abs=1e-4)


def test_position_follows_nose_bridge(face):
    pose = compute_pose(translate(face, dx=0.1, dy=0.1))
    assert pose.position.x == pytest.approx(0.2, abs=1e-5)
    assert pose.position.y == pytest.approx(-0.04, abs=1e-5)


def test_closer_face_has_positive_depth(face):
    closer = face.clone()
    closer[33, 0] -= 0.01
    closer[263, 0] += 0.01
    pose = compute_pose(closer)
    # eye distance 0.20 against the 0.18 reference
    assert pose.position.z == pytest.approx(0.2, abs=1e-4)
    assert pose.scale == pytest.approx(2.0, abs=1e-4)


def test_yaw_from_nose_offset_is_antisymmetric(face):
    left = face.clone()
    left[1, 0] -= 0.02
    right = face.clone()
    right[1, 0] += 0.02
    yaw_left = compute_pose(left).rotation.yaw
    yaw_right = compute_pose(right).rotation.yaw
    assert yaw_right == pytest.approx(-0.06, abs=1e-5)
    assert yaw_left == pytest.approx(-yaw_right, abs=1e-6)


def test_yaw_from_depth_difference(face):
    turned = face.clone()
    turned[[33, 133, 61], 2] -= 0.05
    # left side closer: -(-0.05 * 4)
    assert compute_pose(turned).rotation.yaw == pytest.approx(0.2, abs=1e-5)


@pytest.mark.parametrize("angle", [-0.3, 0.1, 0.5])
def test_roll_matches_eye_line_angle(face, angle):
    pose = compute_pose(roll_face(face, angle))
    assert pose.rotation.roll == pytest.approx(angle, abs=1e-4)


@pytest.mark.parametrize("bad_input", [None, torch.zeros((5, 3)), torch.full((468, 3), float("inf"))])
def test_invalid_frame_gives_neutral_pose(bad_input):
    pose = compute_pose(bad_input)
    assert pose.scale == pytest.approx(1.8)
    assert pose.position.as_tuple() == (0.0, 0.0, 0.0)
    assert pose.rotation.as_tuple() == (0.0, 0.0, 0.0)


def test_weights_come_from_config(face):
    config = MappingConfig()
    config.pose.scale_normalization = 5.0
    assert compute_pose(face, config).scale == pytest.approx(0.9, abs=1e-4)


def test_estimator_stream_convention(face):
    estimator = PoseEstimator()
    poses = estimator.map([face, None])
    assert isinstance(poses[0], PoseTransform)
    assert poses[1] is None
    assert estimator.map(None) == estimator.default_output()
    assert math.isfinite(estimator.map(face).rotation.pitch)


def assert_pose_bounded(pose, limit=100.0):
    values = pose.position.as_tuple() + pose.rotation.as_tuple() + (pose.scale,)
    for value in values:
        assert math.isfinite(value)
        assert abs(value) < limit


@pytest.mark.parametrize("chin_offset", [-0.001 + 1e-7, -0.001, 0.0, -0.05])
def test_collapsed_lower_face_keeps_pitch_bounded(face, chin_offset):
    frame = face.clone()
    frame[152, 1] = frame[6, 1] + chin_offset
    pose = compute_pose(frame)
    assert_pose_bounded(pose)
    # Ratio clamped to 5: pitch stays within (5 + 0.8) * 2 plus the nose depth term
    assert abs(pose.rotation.pitch) <= (5.0 + 0.8) * 2 + 0.2


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_degenerate_frames_keep_pose_finite(seed):
    generator = torch.Generator().manual_seed(seed)
    assert_pose_bounded(compute_pose(torch.rand((468, 3), generator=generator) * 4 - 2))
    assert_pose_bounded(compute_pose(torch.zeros((468, 3))))


def test_single_frame_as_point_list(face):
    estimator = PoseEstimator()
    pose = estimator.map(face.tolist())
    assert isinstance(pose, PoseTransform)
    assert pose.scale == pytest.approx(compute_pose(face).scale)
