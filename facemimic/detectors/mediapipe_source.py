"""MediaPipe FaceLandmarker landmark source for cameras and video files."""

import logging
import time
from typing import Iterator, Optional, Union
from pathlib import Path
import cv2
import numpy as np
import requests
import torch
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision
from tqdm import tqdm

from ..core.base_source import BaseLandmarkSource
from ..core.constants import NUM_REFINED_LANDMARKS

logger = logging.getLogger(__name__)

MODEL_URL = "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task"
DEFAULT_MODEL_PATH = Path.cwd() / "face_landmarker.task"


def ensure_model(model_path: Union[str, Path] = DEFAULT_MODEL_PATH, url: str = MODEL_URL) -> str:
    """
    Ensure the FaceLandmarker model exists, downloading it if necessary.

    Returns:
        Path to the model file

    Raises:
        RuntimeError: If the download fails
    """
    model_path = Path(model_path)
    if model_path.exists():
        logger.info("Using existing MediaPipe model: %s", model_path)
        return str(model_path)

    logger.warning("MediaPipe FaceLandmarker model not found, downloading from %s", url)
    partial_path = model_path.with_suffix(model_path.suffix + ".part")
    try:
        response = requests.get(url, stream=True, timeout=30)
        response.raise_for_status()
        total_size = int(response.headers.get('content-length', 0))

        with open(partial_path, 'wb') as f:
            with tqdm(total=total_size, unit='B', unit_scale=True, desc="Downloading model") as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        pbar.update(len(chunk))
        partial_path.replace(model_path)
    except (requests.RequestException, OSError) as e:
        partial_path.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to download MediaPipe model: {e}") from e

    logger.info("Model downloaded to %s", model_path)
    return str(model_path)


class MediaPipeDetector:
    """
    MediaPipe FaceLandmarker (Tasks API, VIDEO running mode) for 478-point 3D landmarks.

    Provides 468 face landmarks + 10 iris landmarks (5 per eye):
    - x, y normalized to [0, 1] relative to image width/height
    - z relative depth, head center as origin (smaller = closer to camera)
    """

    def __init__(self,
                 model_path: Union[str, Path] = DEFAULT_MODEL_PATH,
                 min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5,
                 device: str = 'cpu'):
        """
        Initialize the detector, downloading the model on first use.

        Args:
            model_path: Location of face_landmarker.task
            min_detection_confidence: Minimum confidence for face detection
            min_tracking_confidence: Minimum confidence for landmark tracking
            device: Device for the returned landmark tensors
        """
        self.device = device
        self._last_timestamp_ms = -1

        base_options = python.BaseOptions(model_asset_path=ensure_model(model_path))
        options = vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=min_detection_confidence,
            min_face_presence_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False
        )
        self.landmarker = vision.FaceLandmarker.create_from_options(options)

    def detect(self, image_rgb: np.ndarray, timestamp_ms: int) -> Optional[torch.Tensor]:
        """
        Detect landmarks in one RGB frame.

        Args:
            image_rgb: (H, W, 3) uint8 RGB image
            timestamp_ms: Frame timestamp; must increase from call to call

        Returns:
            (478, 3) landmark tensor, or None if no face was found
        """
        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image_rgb))
        result = self.landmarker.detect_for_video(mp_image, timestamp_ms)
        if not result.face_landmarks:
            return None

        face_landmarks = result.face_landmarks[0]
        landmarks_np = np.array([[lm.x, lm.y, lm.z] for lm in face_landmarks], dtype=np.float32)
        if landmarks_np.shape[0] != NUM_REFINED_LANDMARKS:
            logger.debug("Expected %d landmarks, got %d", NUM_REFINED_LANDMARKS, landmarks_np.shape[0])
        return torch.from_numpy(landmarks_np).to(self.device)

    def close(self) -> None:
        """Clean up MediaPipe resources."""
        landmarker = getattr(self, 'landmarker', None)
        if landmarker is not None:
            landmarker.close()
            self.landmarker = None


class MediaPipeLandmarkSource(BaseLandmarkSource):
    """
    Reads frames from a camera index or a video file with OpenCV and runs
    MediaPipe on each, yielding one landmark frame (or None) per image.
    """

    def __init__(self,
                 input_source: Union[int, str, Path] = 0,
                 detector: Optional[MediaPipeDetector] = None,
                 mirror: bool = False,
                 model_path: Union[str, Path] = DEFAULT_MODEL_PATH):
        """
        Open the capture.

        Args:
            input_source: Camera index, or path to a video file
            detector: Detector to use; created (and owned) by the source when None
            mirror: Flip frames horizontally before detection
            model_path: Model location for a detector created by the source

        Raises:
            FileNotFoundError: If a video path does not exist
            RuntimeError: If the camera or video cannot be opened
        """
        super().__init__()
        self.is_camera = isinstance(input_source, int) or str(input_source).isdigit()
        if self.is_camera:
            self.cap = cv2.VideoCapture(int(input_source))
        else:
            video_path = Path(input_source)
            if not video_path.exists():
                raise FileNotFoundError(f"Video file not found: {video_path}")
            self.cap = cv2.VideoCapture(str(video_path))
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {input_source}")

        fps = self.cap.get(cv2.CAP_PROP_FPS)
        self.fps: float = fps if fps and fps > 0 else 30.0
        self.width: int = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height: int = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        frame_count = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.frame_count: Optional[int] = frame_count if frame_count > 0 and not self.is_camera else None

        self.mirror = mirror
        self._owns_detector = detector is None
        self.detector = detector if detector is not None else MediaPipeDetector(model_path=model_path)

    def frames(self) -> Iterator[Optional[torch.Tensor]]:
        frame_idx = 0
        start = time.monotonic()
        while self.cap.isOpened():
            ret, frame = self.cap.read()
            if not ret:
                break
            if self.mirror:
                frame = cv2.flip(frame, 1)
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

            if self.is_camera:
                timestamp_ms = int((time.monotonic() - start) * 1000)
            else:
                timestamp_ms = int(frame_idx * 1000.0 / self.fps)
            frame_idx += 1
            yield self.detector.detect(rgb, timestamp_ms)

    def close(self) -> None:
        """Release the capture and, if owned, the detector."""
        super().close()
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self._owns_detector and self.detector is not None:
            self.detector.close()
            self.detector = None
