"""Tests for FacePipeline transitions, events and lifecycle."""

import pytest
import torch

from facemimic.core.base_source import BaseLandmarkSource
from facemimic.core.types import Baseline
from facemimic.processors.events import EventEmitter
from facemimic.processors.pipeline import FacePipeline
from facemimic.scene.headless_node import HeadlessSceneNode

from conftest import make_face, set_eye_height


class ListSource(BaseLandmarkSource):
    def __init__(self, frames):
        super().__init__()
        self._frames = list(frames)

    def frames(self):
        yield from self._frames


def record_events(events):
    log = []
    for name in ("face_detected", "face_tracked", "fps_update"):
        events.on(name, lambda payload, name=name: log.append((name, payload)))
    return log


def test_detection_transitions_emit_once(face, node):
    events = EventEmitter()
    log = record_events(events)
    pipeline = FacePipeline(node=node, events=events)

    results = list(pipeline.process([face, face, None, None, face]))

    detected = [payload["detected"] for name, payload in log if name == "face_detected"]
    assert detected == [True, False, True]
    assert [name for name, _ in log].count("face_tracked") == 3
    assert [r.detected for r in results] == [True, True, False, False, True]
    assert [r.frame_idx for r in results] == [0, 1, 2, 3, 4]


def test_face_tracked_payload(face, node):
    events = EventEmitter()
    payloads = []
    events.on("face_tracked", payloads.append)
    FacePipeline(node=node, events=events).on_results(face)

    payload = payloads[0]
    assert set(payload) == {"expressions", "pose", "landmarks", "fps"}
    assert len(payload["expressions"]) == 52
    assert payload["landmarks"].shape == (468, 3)


def test_node_visibility_follows_tracking(face, node):
    pipeline = FacePipeline(node=node)
    assert pipeline.render_tick() is False
    assert node.visible is False

    pipeline.on_results(face)
    assert pipeline.render_tick() is True
    assert node.visible is True
    assert node.write_count == 1

    pipeline.on_results(None)
    assert pipeline.render_tick() is False
    assert node.visible is False
    assert node.write_count == 1


def test_invalid_frame_counts_as_no_face(face, node):
    pipeline = FacePipeline(node=node)
    pipeline.on_results(face)
    result = pipeline.on_results(torch.zeros((20, 3)))
    assert result.detected is False
    assert not pipeline.stabilizer.is_seeded


def test_render_loop_faster_than_detection(face, node):
    pipeline = FacePipeline(node=node)
    pipeline.config.scene.step_on_render = True
    pipeline.on_results(face)
    pipeline.on_results(set_eye_height(face, 0.0))
    blink_after_update = pipeline.stabilizer.state.expressions["eyeBlinkLeft"]

    pipeline.render_tick()
    pipeline.render_tick()
    assert node.influences["eyeBlinkLeft"] > blink_after_update
    assert node.influences["eyeBlinkLeft"] <= 1.0


def test_calibrate_uses_latest_frame(face):
    pipeline = FacePipeline()
    assert pipeline.calibrate() is False

    pipeline.on_results(face)
    pipeline.on_results(None)
    assert pipeline.calibrate() is True
    assert pipeline.expression_mapper.calibrated
    assert pipeline.expression_mapper.baseline.left_eye_height == pytest.approx(0.01, abs=1e-6)


def test_reset_forgets_subject(face, node):
    pipeline = FacePipeline(node=node)
    pipeline.on_results(face)
    pipeline.calibrate()
    pipeline.reset()

    assert pipeline.expression_mapper.baseline == Baseline.default()
    assert pipeline.current_landmarks is None
    assert not pipeline.face_detected
    assert not pipeline.stabilizer.is_seeded
    assert pipeline.tracking_state["calibrated"] is False


def test_fps_update_event(face):
    now = [0.0]
    events = EventEmitter()
    updates = []
    events.on("fps_update", updates.append)
    pipeline = FacePipeline(events=events, clock=lambda: now[0])

    for i in range(11):
        now[0] = i / 10
        pipeline.on_results(face)
    assert updates == [{"fps": 10}]
    assert pipeline.tracking_state["fps"] == 10


def test_start_drives_source(face, node):
    source = ListSource([face, None, face])
    pipeline = FacePipeline(source=source, node=node)
    assert pipeline.start() == 3
    assert node.visible is True
    assert pipeline.tracking_state["running"] is False


def test_stop_ends_source_loop(face):
    source = ListSource([face] * 10)
    pipeline = FacePipeline(source=source)
    seen = []
    pipeline.events.on("face_tracked", lambda payload: (seen.append(1), pipeline.stop()))
    assert pipeline.start() == 1
    assert len(seen) == 1


def test_start_without_source():
    with pytest.raises(RuntimeError):
        FacePipeline().start()


def test_config_shared_by_components():
    pipeline = FacePipeline()
    assert pipeline.expression_mapper.config is pipeline.config
    assert pipeline.pose_estimator.config is pipeline.config
    assert pipeline.stabilizer.config is pipeline.config


def test_binding_negotiated_from_node():
    node = HeadlessSceneNode(influences=["jawOpen", "eyeBlinkLeft", "eyeBlinkRight", "mouthSmileLeft"])
    pipeline = FacePipeline(node=node)
    assert pipeline.binding.is_complete
    pipeline.on_results(make_face())
    pipeline.render_tick()
    assert set(node.influences) == {"jawOpen", "eyeBlinkLeft", "eyeBlinkRight", "mouthSmileLeft"}


def test_requested_calibration_applies_to_first_face(face, node):
    pipeline = FacePipeline(node=node)
    pipeline.request_calibration()
    wide_open = set_eye_height(face, 0.02)

    assert pipeline.on_results(None).detected is False
    assert not pipeline.expression_mapper.calibrated

    result = pipeline.on_results(wide_open)
    assert pipeline.expression_mapper.calibrated
    assert pipeline.expression_mapper.baseline.left_eye_height == pytest.approx(0.02, abs=1e-6)
    # Calibrated on this very frame, so the stabilizer snaps to a neutral eye
    assert result.expressions["eyeWideLeft"] == pytest.approx(0.0, abs=1e-6)
    assert result.state.expressions["eyeWideLeft"] == pytest.approx(0.0, abs=1e-6)


def test_calibration_request_is_consumed_once(face):
    pipeline = FacePipeline()
    pipeline.request_calibration()
    pipeline.on_results(face)
    pipeline.on_results(set_eye_height(face, 0.02))
    assert pipeline.expression_mapper.baseline.left_eye_height == pytest.approx(0.01, abs=1e-6)
