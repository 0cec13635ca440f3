"""Per-frame orchestration: landmarks to expressions and pose to a stabilized scene node."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, Optional
import torch

from ..core.base_scene_node import BaseSceneNode
from ..core.base_source import BaseLandmarkSource
from ..core.config import MappingConfig
from ..core.landmarks import LandmarkInput, prepare_frame
from ..core.types import ExpressionMap, PoseTransform, StabilizedState
from ..mappers.expression_mapper import ExpressionMapper
from ..mappers.pose_estimator import PoseEstimator
from ..scene.binding import InfluenceBinding
from .events import EventEmitter, FACE_DETECTED, FACE_TRACKED, FPS_UPDATE
from .frame_rate import FrameRateCounter
from .stabilizer import Stabilizer
from .stream_utils import apply_to_stream

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """Outcome of one landmark frame."""
    frame_idx: int
    detected: bool
    expressions: Optional[ExpressionMap] = None
    pose: Optional[PoseTransform] = None
    state: Optional[StabilizedState] = None


class FacePipeline:
    """
    Wires a landmark source, the mappers, the stabilizer and a scene node.

    `on_results` is the source callback and runs the mappers and one
    stabilizer update synchronously. `render_tick` is called by the
    render loop, at whatever rate it runs, and writes the stabilized
    state to the node.
    """

    def __init__(self,
                 source: Optional[BaseLandmarkSource] = None,
                 node: Optional[BaseSceneNode] = None,
                 config: Optional[MappingConfig] = None,
                 events: Optional[EventEmitter] = None,
                 binding: Optional[InfluenceBinding] = None,
                 render_on_results: bool = True,
                 clock: Callable[[], float] = time.perf_counter):
        """
        Initialize pipeline with optional components.

        Args:
            source: Landmark source driven by start()/stop()
            node: Scene node written by render_tick()
            config: Shared tunables, referenced by every component
            events: Emitter for face_detected / face_tracked / fps_update
            binding: Pre-negotiated influence binding; negotiated from node when None
            render_on_results: Call render_tick after each source frame in start();
                               disable when a separate render loop samples the state
            clock: Time source for the frame rate counter
        """
        self.config = config if config is not None else MappingConfig()
        self.source = source
        self.node = node
        self.events = events if events is not None else EventEmitter()
        self.render_on_results = render_on_results

        self.expression_mapper = ExpressionMapper(self.config)
        self.pose_estimator = PoseEstimator(self.config)
        self.stabilizer = Stabilizer(self.config)
        self.frame_rate = FrameRateCounter(clock=clock)

        if binding is None and node is not None:
            binding = InfluenceBinding.negotiate(node)
        self.binding = binding

        self.face_detected = False
        self.current_landmarks: Optional[torch.Tensor] = None
        self.current_expressions: Optional[ExpressionMap] = None
        self.current_pose: Optional[PoseTransform] = None
        self._frame_idx = 0
        self._calibration_pending = False

    def on_results(self, landmarks: Optional[LandmarkInput]) -> FrameResult:
        """
        Handle one result from the landmark source.

        Args:
            landmarks: Landmark frame, or None when nothing was detected

        Returns:
            FrameResult for this frame
        """
        fps = self.frame_rate.tick()
        if fps is not None:
            self.events.emit(FPS_UPDATE, {"fps": fps})

        frame_idx = self._frame_idx
        self._frame_idx += 1

        frame = prepare_frame(landmarks)
        if frame is None:
            if self.face_detected:
                self.face_detected = False
                logger.info("Face lost")
                self.events.emit(FACE_DETECTED, {"detected": False})
            self.stabilizer.lose_subject()
            return FrameResult(frame_idx=frame_idx, detected=False)

        if not self.face_detected:
            self.face_detected = True
            logger.info("Face detected")
            self.events.emit(FACE_DETECTED, {"detected": True})

        if self._calibration_pending:
            self._calibration_pending = not self.expression_mapper.calibrate(frame)

        self.current_landmarks = frame
        expressions = self.expression_mapper.map_frame(frame)
        pose = self.pose_estimator.map_frame(frame)
        self.current_expressions = expressions
        self.current_pose = pose

        self.events.emit(FACE_TRACKED, {
            "expressions": expressions,
            "pose": pose,
            "landmarks": frame,
            "fps": self.frame_rate.fps,
        })

        state = self.stabilizer.update(expressions, pose)
        return FrameResult(frame_idx=frame_idx, detected=True,
                           expressions=expressions, pose=pose, state=state)

    def render_tick(self) -> bool:
        """
        Write the stabilized state to the node.

        Returns:
            True if a write happened (False while unseeded or without a node)
        """
        if self.node is None:
            return False
        return self.stabilizer.apply(self.node, self.binding)

    def process(self, stream: Iterable[Optional[LandmarkInput]]) -> Iterator[FrameResult]:
        """
        Run a sequence of frames through the pipeline, rendering after each.

        Args:
            stream: Landmark frames; None entries count as "no face"

        Yields:
            FrameResult per input frame
        """
        return apply_to_stream(iter(stream), self._process_frame, preserve_none=False)

    def _process_frame(self, landmarks: Optional[LandmarkInput]) -> FrameResult:
        result = self.on_results(landmarks)
        self.render_tick()
        return result

    def _handle_source_frame(self, landmarks: Optional[torch.Tensor]) -> None:
        self.on_results(landmarks)
        if self.render_on_results:
            self.render_tick()

    def start(self) -> int:
        """
        Run the source loop until it is exhausted or stop() is called.

        Returns:
            Number of frames processed

        Raises:
            RuntimeError: If the pipeline has no source
        """
        if self.source is None:
            raise RuntimeError("FacePipeline.start() requires a landmark source")
        return self.source.start(self._handle_source_frame)

    def stop(self) -> None:
        """Stop invoking the callback; no in-flight work needs aborting."""
        if self.source is not None:
            self.source.stop()

    def calibrate(self) -> bool:
        """
        Capture the neutral baseline from the latest valid frame.

        Returns:
            False if no face has been seen yet
        """
        if self.current_landmarks is None:
            logger.warning("Cannot calibrate: no face has been tracked yet")
            return False
        return self.expression_mapper.calibrate(self.current_landmarks)

    def request_calibration(self) -> None:
        """Calibrate from the next valid frame, before that frame is mapped."""
        self._calibration_pending = True

    def reset(self) -> None:
        """Forget the current subject: default baseline, no last frame, unseeded stabilizer."""
        self.expression_mapper.reset_baseline()
        self.face_detected = False
        self.current_landmarks = None
        self.current_expressions = None
        self.current_pose = None
        self.stabilizer.reset()
        logger.info("Pipeline reset")

    @property
    def tracking_state(self) -> Dict[str, Any]:
        return {
            "running": self.source.running if self.source is not None else False,
            "face_detected": self.face_detected,
            "fps": self.frame_rate.fps,
            "calibrated": self.expression_mapper.calibrated,
            "landmarks": self.current_landmarks,
            "expressions": self.current_expressions,
        }
