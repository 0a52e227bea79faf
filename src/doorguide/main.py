"""
🚪 DoorGuide - single-frame door and obstacle guidance.

Loads still images, runs the frame pipeline on each and prints the one
utterance chosen for it. Speech playback is left to the caller.

Usage:
    doorguide photo.jpg --door-model models/door.pt --rotate 90
    doorguide frames/*.jpg --json --log-dir logs/session
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from doorguide.navigation.builder import Builder
from doorguide.telemetry.navigation_logger import init_navigation_logger
from doorguide.utils.config import Config

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def load_frame(path: Path, rotate: int = 0) -> Optional[np.ndarray]:
    """Read an image as RGB, optionally rotated clockwise by ``rotate`` degrees."""
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        return None
    if rotate in _ROTATIONS:
        bgr = cv2.rotate(bgr, _ROTATIONS[rotate])
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Door and obstacle guidance for still frames")
    parser.add_argument("images", nargs="+", type=Path, help="Image files to interpret")
    parser.add_argument("--door-model", default=None, help="Door detector weights (YOLO .pt)")
    parser.add_argument("--obstacle-model", default=None, help="General-purpose detector weights")
    parser.add_argument("--door-state-model", default=None, help="TorchScript open/closed classifier")
    parser.add_argument("--device", default=None, help="cpu, cuda or mps")
    parser.add_argument("--rotate", type=int, choices=[0, 90, 180, 270], default=0,
                        help="Clockwise rotation applied before inference")
    parser.add_argument("--no-depth", action="store_true", help="Disable depth estimation")
    parser.add_argument("--no-obstacles", action="store_true", help="Disable the obstacle detector")
    parser.add_argument("--json", action="store_true", help="Print one JSON object per image")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write per-concern debug logs here")
    parser.add_argument("--log-level", default=getattr(Config, "LOG_LEVEL", "INFO"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    init_navigation_logger(args.log_dir or getattr(Config, "LOG_SESSION_DIR", None))

    if args.device:
        Config.MODEL_DEVICE = args.device
    if args.no_depth:
        Config.DEPTH_ENABLED = False
    if args.no_obstacles:
        Config.OBSTACLE_DETECTION_ENABLED = False

    print("🚪 DoorGuide - building pipeline", file=sys.stderr)
    pipeline = Builder().build_pipeline(
        door_model=args.door_model,
        obstacle_model=args.obstacle_model,
        door_state_model=args.door_state_model,
    )

    exit_code = 0
    for path in args.images:
        frame = load_frame(path, args.rotate)
        if frame is None:
            print(f"❌ Could not read image: {path}", file=sys.stderr)
            exit_code = 1
            continue

        result = pipeline.process(frame)
        if args.json:
            payload = {"image": str(path), **result.to_dict()}
            print(json.dumps(payload))
        else:
            print(f"{path}: {result.outcome.message}")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
