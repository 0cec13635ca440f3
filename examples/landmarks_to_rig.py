#!/usr/bin/env python3
"""
landmarks_to_rig.py - Drive a character rig from a face video, webcam or landmark recording

Runs the full pipeline (landmarks -> expressions + pose -> stabilizer ->
scene node) into a headless node and records what would be written to a
real scene, frame by frame.

Usage:
    python landmarks_to_rig.py --input INPUT [options]

Example:
    python landmarks_to_rig.py --input input.mp4 --output rig.json
    python landmarks_to_rig.py --input 0 --save-landmarks landmarks.json
    python landmarks_to_rig.py --input landmarks.json --output rig.json --config tuning.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

sys.path.append(str(Path(__file__).parent.parent))
from facemimic import (
    DataExporter,
    FacePipeline,
    HeadlessSceneNode,
    InputType,
    ReplayLandmarkSource,
    detect_input_type,
    load_config,
)
from facemimic.core.base_source import BaseLandmarkSource

logger = logging.getLogger("landmarks_to_rig")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Face landmarks to stabilized character rig output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input Types:
  The script automatically detects input type:
  - Camera index (0, 1, ...)          -> live MediaPipe detection
  - Video files (.mp4, .avi, etc.)    -> MediaPipe detection per frame
  - Landmarks recording (.json)       -> skip detection, replay frames

Examples:
  # Record stabilized rig output from a video
  python landmarks_to_rig.py --input input.mp4 --output rig.json

  # Save landmarks for later tuning runs
  python landmarks_to_rig.py --input input.mp4 --save-landmarks landmarks.json

  # Re-run with different tuning, calibrated on the first frame
  python landmarks_to_rig.py --input landmarks.json --output rig.json --config tuning.json --calibrate-first
        """
    )

    parser.add_argument("--input", "-i", type=str, required=True,
                        help="Camera index, video file or landmarks recording")
    parser.add_argument("--output", "-o", type=str,
                        help="Write per-frame stabilized rig output (JSON)")
    parser.add_argument("--save-landmarks", type=str,
                        help="Write detected landmarks (JSON)")
    parser.add_argument("--config", "-c", type=str,
                        help="Tuning config (JSON); defaults when omitted")
    parser.add_argument("--model", "-m", type=str, default="face_landmarker.task",
                        help="MediaPipe FaceLandmarker model path (downloaded if missing)")
    parser.add_argument("--calibrate-first", action="store_true",
                        help="Calibrate the neutral baseline on the first tracked frame")
    parser.add_argument("--mirror", action="store_true",
                        help="Flip camera/video frames horizontally before detection")
    parser.add_argument("--realtime", action="store_true",
                        help="Pace landmark replay to the recorded fps")
    parser.add_argument("--max-frames", type=int,
                        help="Stop after this many frames")
    parser.add_argument("--no-progress", action="store_true",
                        help="Disable progress bars")
    parser.add_argument("--debug", action="store_true",
                        help="Show debug information")

    return parser.parse_args()


def create_source(args: argparse.Namespace, input_type: InputType) -> BaseLandmarkSource:
    """Open the landmark source matching the input type."""
    if input_type == InputType.LANDMARKS:
        return ReplayLandmarkSource(args.input, realtime=args.realtime)

    # Imported here so replay runs do not need MediaPipe
    from facemimic.detectors.mediapipe_source import MediaPipeLandmarkSource

    input_source = int(args.input) if input_type == InputType.CAMERA else args.input
    return MediaPipeLandmarkSource(input_source, mirror=args.mirror, model_path=args.model)


def process_pipeline(args: argparse.Namespace, input_type: InputType, show_progress: bool) -> None:
    """Run the source through the pipeline into a headless node."""
    config = load_config(args.config)
    node = HeadlessSceneNode()

    with create_source(args, input_type) as source:
        metadata = {
            'fps': getattr(source, 'fps', None),
            'width': getattr(source, 'width', None),
            'height': getattr(source, 'height', None),
        }
        total_frames: Optional[int] = getattr(source, 'frame_count', None)
        if args.max_frames is not None:
            total_frames = min(total_frames, args.max_frames) if total_frames else args.max_frames

        pipeline = FacePipeline(source=source, node=node, config=config)
        logger.info("Input: %sx%s, %s fps, %s frames",
                    metadata['width'], metadata['height'], metadata['fps'], total_frames)

        landmarks_writer = DataExporter(args.save_landmarks, dict(metadata, kind='landmarks')) if args.save_landmarks else None
        output_writer = DataExporter(args.output, dict(metadata, kind='rig', config=config.to_dict())) if args.output else None
        progress_bar = tqdm(total=total_frames, desc="Processing frames", unit="frames") if show_progress else None

        if args.calibrate_first:
            pipeline.request_calibration()
        frame_count = 0

        def on_frame(landmarks) -> None:
            nonlocal frame_count
            result = pipeline.on_results(landmarks)
            pipeline.render_tick()

            if landmarks_writer:
                landmarks_writer.write_item(pipeline.current_landmarks if result.detected else None)
            if output_writer:
                output_writer.write_item({
                    'frame': result.frame_idx,
                    'detected': result.detected,
                    'expressions': result.expressions,
                    'pose': result.pose,
                    'node': node.snapshot(),
                })

            frame_count += 1
            if progress_bar is not None:
                progress_bar.update(1)
            if args.max_frames is not None and frame_count >= args.max_frames:
                pipeline.stop()

        try:
            if landmarks_writer:
                landmarks_writer.open()
            if output_writer:
                output_writer.open()
            source.start(on_frame)
        finally:
            if landmarks_writer:
                landmarks_writer.close()
            if output_writer:
                output_writer.close()
            if progress_bar is not None:
                progress_bar.close()

    logger.info("Processing complete: %d frames processed", frame_count)


def main() -> None:
    """Main execution function."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        input_type = detect_input_type(args.input)
        logger.info("Detected input type: %s", input_type.value)
        process_pipeline(args, input_type, show_progress=not args.no_progress)
    except (FileNotFoundError, RuntimeError, ValueError) as e:
        logger.error("Error: %s", e, exc_info=args.debug)
        sys.exit(1)

    logger.info("Pipeline completed successfully!")


if __name__ == "__main__":
    main()
