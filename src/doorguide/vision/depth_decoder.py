"""Decode MiDaS-style inverse-depth output into an approximate metric depth grid.

The squashing transform below is not calibrated. Values are monotonic in the
model output and bounded by the configured horizon, which makes them good for
ordinal questions ("is this nearer than X") and unreliable as precise metric
distances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config import Config
from .detection import Box


@dataclass(frozen=True, eq=False)
class DepthField:
    """Fixed-size grid of non-negative depths in meters.

    The grid is indexed independently of frame resolution: frame coordinates
    must be rescaled into grid coordinates before sampling.
    """

    values: np.ndarray
    max_depth: float

    @classmethod
    def zeros(cls, height: int, width: int, max_depth: float) -> "DepthField":
        return cls(values=np.zeros((height, width), dtype=np.float32), max_depth=float(max_depth))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape[0], self.values.shape[1]

    @property
    def available(self) -> bool:
        """False when the field is all zero, i.e. depth inference failed."""
        return bool(np.any(self.values > 0))

    def grid_rect(self, box: Box, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """Inclusive grid rectangle (x1, y1, x2, y2) covering ``box``, clamped to the grid."""
        grid_h, grid_w = self.shape
        sx = grid_w / float(frame_width)
        sy = grid_h / float(frame_height)
        x1 = min(max(int(box.left * sx), 0), grid_w - 1)
        y1 = min(max(int(box.top * sy), 0), grid_h - 1)
        x2 = min(max(int(box.right * sx), 0), grid_w - 1)
        y2 = min(max(int(box.bottom * sy), 0), grid_h - 1)
        return x1, y1, x2, y2

    def mean_over_box(self, box: Box, frame_width: int, frame_height: int) -> float:
        """Average depth inside ``box`` (given in frame pixels)."""
        x1, y1, x2, y2 = self.grid_rect(box, frame_width, frame_height)
        if x2 < x1 or y2 < y1:
            return 0.0
        region = self.values[y1:y2 + 1, x1:x2 + 1]
        if region.size == 0:
            return 0.0
        return float(np.mean(region))

    def resample(self, frame_width: int, frame_height: int) -> np.ndarray:
        """Nearest-neighbour depth per frame pixel, shape (frame_height, frame_width)."""
        return cv2.resize(self.values, (frame_width, frame_height), interpolation=cv2.INTER_NEAREST)


class DepthDecoder:
    """Turns a raw inverse-depth tensor into a DepthField."""

    def __init__(self, grid_size: Optional[int] = None, max_depth: Optional[float] = None) -> None:
        self.grid_size = int(grid_size if grid_size is not None else getattr(Config, "DEPTH_GRID_SIZE", 256))
        self.max_depth = float(max_depth if max_depth is not None else getattr(Config, "DEPTH_MAX_METERS", 10.0))

    def empty(self) -> DepthField:
        return DepthField.zeros(self.grid_size, self.grid_size, self.max_depth)

    def decode(self, raw: Optional[np.ndarray]) -> DepthField:
        """Logistic squash of each inverse-depth value into ``[0, max_depth]``.

        A missing or malformed tensor yields an all-zero field, which callers
        treat as "depth unavailable".
        """
        logger = get_navigation_logger().depth
        if raw is None:
            logger.warning("Depth inference unavailable, using empty depth field")
            return self.empty()

        try:
            grid = np.squeeze(np.asarray(raw, dtype=np.float32))
            if grid.ndim != 2:
                raise ValueError(f"expected a 2-D depth grid, got shape {np.shape(raw)}")

            with np.errstate(over="ignore"):
                depth = self.max_depth / (1.0 + np.exp(-grid))
            depth = np.nan_to_num(depth, nan=0.0, posinf=self.max_depth, neginf=0.0)
            depth = np.clip(depth, 0.0, self.max_depth).astype(np.float32)
        except Exception as err:  # noqa: BLE001
            logger.warning(f"Depth decoding failed: {err}")
            return self.empty()

        logger.debug(
            f"Depth grid {depth.shape[1]}x{depth.shape[0]} range=[{float(depth.min()):.2f}, {float(depth.max()):.2f}]m"
        )
        return DepthField(values=depth, max_depth=self.max_depth)


__all__ = ["DepthDecoder", "DepthField"]
