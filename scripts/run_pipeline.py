"""Run the event pipeline over a video file and print events per tick.

    python scripts/run_pipeline.py assets/sample_video.mp4 --analyze "person near the gate"
"""

import argparse
import asyncio
import json
import logging
import os

from lumenta.camera.video_source import VideoFileSource
from lumenta.pipeline import FrameProcessor, ProcessingOptions
from lumenta.scheduling import AnalyzeNode

logger = logging.getLogger(__name__)


async def run(args):
    source = VideoFileSource(file_path=args.video, loop=False)
    feed_id = args.feed_id or os.path.splitext(os.path.basename(args.video))[0]

    overrides = {}
    if args.no_gemini:
        overrides.update(analyze_backend=None, narrative_backend=None)
    processor = FrameProcessor.from_config(feed_id, **overrides)

    options = ProcessingOptions(
        enable_object_detection=not args.no_detection,
        enable_motion_overlay=not args.no_motion,
        enable_face_recognition=args.identity,
        analyze_nodes=[
            AnalyzeNode(prompt=p, sensitivity=args.sensitivity) for p in args.analyze
        ],
        video_id=feed_id,
        enable_narrative=not args.no_narrative,
    )

    frames = 0
    try:
        while args.max_frames is None or frames < args.max_frames:
            result = await processor.process_source(source, options)
            if result is None:
                break
            frames += 1

            for event in result.events:
                if event.overlay_only and not args.show_motion:
                    continue
                print(json.dumps(event.to_dict()))
            logger.debug(
                f"Frame {frames}: {len(result.detections)} detections, "
                f"{len(result.events)} events in {result.processing_time:.1f}ms"
            )

            # Let background requests progress between ticks
            await asyncio.sleep(args.tick_delay)
    finally:
        await processor.aclose()
        source.release()

    logger.info(f"Processed {frames} frames from {args.video}")


def main():
    parser = argparse.ArgumentParser(description="Run the frame event pipeline on a video")
    parser.add_argument("video", help="Path to a video file")
    parser.add_argument("--feed-id", default=None, help="Feed id (default: file name)")
    parser.add_argument(
        "--analyze",
        action="append",
        default=[],
        help="Analyze prompt (repeatable)",
    )
    parser.add_argument(
        "--sensitivity",
        default="medium",
        choices=["low", "medium", "high"],
        help="Sensitivity for all analyze prompts (default: medium)",
    )
    parser.add_argument("--max-frames", type=int, default=None, help="Stop after N frames")
    parser.add_argument(
        "--tick-delay", type=float, default=0.04, help="Seconds between ticks (default: 0.04)"
    )
    parser.add_argument("--no-detection", action="store_true", help="Disable object detection")
    parser.add_argument("--no-motion", action="store_true", help="Disable motion overlay")
    parser.add_argument("--no-narrative", action="store_true", help="Disable narrative")
    parser.add_argument("--no-gemini", action="store_true", help="Run without Gemini")
    parser.add_argument("--identity", action="store_true", help="Enable identity matching")
    parser.add_argument("--show-motion", action="store_true", help="Print motion markers")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
