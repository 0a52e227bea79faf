"""
Intensity-based obstacle detection over the lower part of a frame.

This module finds the largest contiguous region of darker-than-average pixels
in the bottom slice of an RGB frame and reports its share of the scanned
area. Dark blobs close to the feet are treated as obstacle candidates. The
heuristic is not object-aware: it is an advisory fallback for when no
detector box qualifies.

Steps:
- Luma per pixel (0.299 R + 0.587 G + 0.114 B)
- Adaptive threshold: mean luma minus a fixed offset, clamped to [0, 255]
- Maximal 4-connected foreground components
- Largest component proportion, vertical span and (optionally) mean depth

Usage:
    detector = ObstacleRegionDetector(lower_fraction=0.3, proportion_threshold=0.15)
    analysis = detector.analyze(rgb_frame)
    if analysis.is_obstacle:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

import cv2
import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config_sections import ObstacleRegionConfig, load_obstacle_region_config
from .depth_decoder import DepthField


@dataclass(frozen=True)
class RegionAnalysis:
    """Statistics of the largest foreground region in the scanned slice."""

    proportion: float
    largest_size: int
    total_pixels: int
    threshold: int
    region_height: int
    vertical_span: int = 0
    average_depth: Optional[float] = None
    is_obstacle: bool = False

    @classmethod
    def empty(cls) -> "RegionAnalysis":
        return cls(proportion=0.0, largest_size=0, total_pixels=0, threshold=0, region_height=0)


def to_luma(rgb: np.ndarray) -> np.ndarray:
    """Integer luma of an RGB array, truncated like an int cast."""
    rgb = rgb.astype(np.float32)
    luma = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
    return luma.astype(np.int32)


class ObstacleRegionDetector:
    """Largest dark connected region in the lower part of a frame."""

    def __init__(self, config: Optional[ObstacleRegionConfig] = None, **overrides) -> None:
        base = config or load_obstacle_region_config()
        self.config = replace(base, **overrides) if overrides else base

    def analyze(self, frame: np.ndarray, depth_field: Optional[DepthField] = None) -> RegionAnalysis:
        """Scan the lower slice of ``frame`` (H x W x RGB).

        Any processing error is reported as "no obstacle".
        """
        logger = get_navigation_logger().obstacle
        try:
            return self._analyze(frame, depth_field)
        except Exception as err:  # noqa: BLE001
            logger.error(f"Region analysis failed: {err}")
            return RegionAnalysis.empty()

    def detect(self, frame: np.ndarray, depth_field: Optional[DepthField] = None) -> bool:
        return self.analyze(frame, depth_field).is_obstacle

    def _analyze(self, frame: np.ndarray, depth_field: Optional[DepthField]) -> RegionAnalysis:
        logger = get_navigation_logger().obstacle
        if frame.ndim != 3 or frame.shape[2] < 3:
            raise ValueError(f"expected an H x W x 3 RGB frame, got shape {frame.shape}")

        height, width = frame.shape[:2]
        start_y = int(height * (1.0 - self.config.lower_fraction))
        region_height = height - start_y
        if region_height <= 0 or width <= 0:
            return RegionAnalysis.empty()

        luma = to_luma(frame[start_y:, :, :3])
        total_pixels = int(luma.size)
        mean_luma = int(luma.sum()) // total_pixels
        threshold = int(np.clip(mean_luma - self.config.threshold_offset, 0, 255))
        logger.debug(f"Mean luma: {mean_luma}, Threshold: {threshold}")

        binary = (luma < threshold).astype(np.uint8)
        count, labels, stats, _ = cv2.connectedComponentsWithStats(binary, connectivity=4)
        if count <= 1:
            logger.debug("No foreground pixels in lower region")
            return RegionAnalysis(
                proportion=0.0,
                largest_size=0,
                total_pixels=total_pixels,
                threshold=threshold,
                region_height=region_height,
            )

        # Label 0 is the background
        best = int(np.argmax(stats[1:, cv2.CC_STAT_AREA])) + 1
        largest_size = int(stats[best, cv2.CC_STAT_AREA])
        vertical_span = int(stats[best, cv2.CC_STAT_HEIGHT])
        proportion = largest_size / float(total_pixels)

        average_depth = None
        if depth_field is not None and depth_field.available:
            depth = depth_field.resample(width, height)[start_y:]
            average_depth = float(np.mean(depth[labels == best]))

        is_obstacle = self._decide(proportion, vertical_span, region_height, average_depth)
        logger.debug(
            f"Largest region size: {largest_size}, Proportion: {proportion:.3f}, "
            f"span={vertical_span}/{region_height}, depth={average_depth}, obstacle={is_obstacle}"
        )
        return RegionAnalysis(
            proportion=proportion,
            largest_size=largest_size,
            total_pixels=total_pixels,
            threshold=threshold,
            region_height=region_height,
            vertical_span=vertical_span,
            average_depth=average_depth,
            is_obstacle=is_obstacle,
        )

    def _decide(
        self,
        proportion: float,
        vertical_span: int,
        region_height: int,
        average_depth: Optional[float],
    ) -> bool:
        if average_depth is None:
            return proportion >= self.config.proportion_threshold

        # Depth-gated: smaller regions count when near, wall/floor-spanning ones never do
        return (
            proportion >= self.config.depth_proportion_threshold
            and average_depth < self.config.depth_cutoff
            and vertical_span < self.config.max_span_fraction * region_height
        )


__all__ = ["ObstacleRegionDetector", "RegionAnalysis", "to_luma"]
