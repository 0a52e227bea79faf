"""Optional open/closed/semi-open classifier for detected door hinges."""

from __future__ import annotations

from enum import Enum
from typing import Optional

import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from .detection import Box
from .tensor_decoder import ModelConfigurationError


class DoorState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    SEMI_OPEN = "semi_open"


# Score vector order of the classifier head
STATE_ORDER = (DoorState.CLOSED, DoorState.OPEN, DoorState.SEMI_OPEN)


def crop_around(frame: np.ndarray, box: Box, padding: float) -> np.ndarray:
    """Crop ``box`` grown by ``padding`` times its size on every side.

    A degenerate crop falls back to the whole frame.
    """
    height, width = frame.shape[:2]
    pad_x = box.width * padding
    pad_y = box.height * padding
    x1 = max(int(box.left - pad_x), 0)
    y1 = max(int(box.top - pad_y), 0)
    x2 = min(int(box.right + pad_x), width)
    y2 = min(int(box.bottom + pad_y), height)
    if x2 <= x1 or y2 <= y1:
        return frame
    return frame[y1:y2, x1:x2]


class DoorStateClassifier:
    """Wraps a runner returning three scores (closed, open, semi-open).

    The hinge alone is small, so the crop is widened to take in the door leaf.
    """

    def __init__(self, runner, *, padding: float = 1.5) -> None:
        self.runner = runner
        self.padding = float(padding)

    def classify(self, frame: np.ndarray, box: Optional[Box] = None) -> Optional[DoorState]:
        """Return the most likely state, or None when the classifier is unavailable."""
        logger = get_navigation_logger().vision
        crop = crop_around(frame, box, self.padding) if box is not None else frame

        try:
            raw = self.runner.run(crop)
        except Exception as err:  # noqa: BLE001
            logger.warning(f"Door state inference failed: {err}")
            return None
        if raw is None:
            return None

        scores = np.asarray(raw, dtype=np.float32).reshape(-1)
        if scores.size != len(STATE_ORDER):
            raise ModelConfigurationError(
                f"Door state model returned {scores.size} scores, expected {len(STATE_ORDER)}"
            )

        state = STATE_ORDER[int(np.argmax(scores))]
        logger.debug(f"Door state {state.value} scores={np.round(scores, 3).tolist()}")
        return state


__all__ = ["DoorState", "DoorStateClassifier", "crop_around"]
