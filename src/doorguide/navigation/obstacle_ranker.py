"""Depth-fused obstacle ranking."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config_sections import ObstacleRankingConfig, load_obstacle_ranking_config
from doorguide.vision.depth_decoder import DepthField
from doorguide.vision.detection import Detection
from doorguide.vision.obstacle_region import ObstacleRegionDetector
from .zones import Direction, classify_zone

UNKNOWN_LABEL = "unknown obstacle"
REGION_LABEL = "obstacle"


@dataclass(frozen=True)
class ObstacleFinding:
    """Best obstacle candidate of one frame."""

    present: bool
    direction: Optional[Direction] = None
    distance_meters: float = 0.0
    label: str = ""
    imminent: bool = False
    source: str = "none"  # "detector" or "region"

    @classmethod
    def absent(cls) -> "ObstacleFinding":
        return cls(present=False)


class ObstacleRanker:
    """Finds the nearest obstacle by averaging depth inside detector boxes.

    Boxes come from a general-purpose detector. When none of them qualifies
    the intensity-based region detector is consulted instead.
    """

    def __init__(
        self,
        config: Optional[ObstacleRankingConfig] = None,
        *,
        region_detector: Optional[ObstacleRegionDetector] = None,
        depth_region_detector: Optional[ObstacleRegionDetector] = None,
        **overrides,
    ) -> None:
        base = config or load_obstacle_ranking_config()
        self.config = replace(base, **overrides) if overrides else base
        # Plain scan of the bottom slice, used when no depth is available
        self.region_detector = region_detector or ObstacleRegionDetector()
        # Taller scan, only trusted together with the depth gate
        self.depth_region_detector = depth_region_detector or ObstacleRegionDetector(
            lower_fraction=self.config.fallback_lower_fraction
        )

    def rank(
        self,
        detections: Sequence[Detection],
        depth_field: Optional[DepthField],
        frame_width: int,
        frame_height: int,
        frame: Optional[np.ndarray] = None,
    ) -> ObstacleFinding:
        """Return the nearest obstacle, short-circuiting on the first one inside proximity range."""
        logger = get_navigation_logger().obstacle
        nearest: Optional[ObstacleFinding] = None

        if depth_field is not None and depth_field.available:
            for det in detections:
                if not self._is_candidate(det, frame_height):
                    continue
                label = self._label_for(det)
                if label is None:
                    continue

                distance = depth_field.mean_over_box(det.box, frame_width, frame_height)
                if distance <= 0.0:
                    continue

                direction = classify_zone(det.center_x, frame_width)
                if distance < self.config.proximity_distance:
                    logger.info(f"Imminent {label} at {distance:.2f}m ({direction.value})")
                    return ObstacleFinding(
                        present=True,
                        direction=direction,
                        distance_meters=distance,
                        label=label,
                        imminent=True,
                        source="detector",
                    )

                if nearest is None or distance < nearest.distance_meters:
                    nearest = ObstacleFinding(
                        present=True,
                        direction=direction,
                        distance_meters=distance,
                        label=label,
                        source="detector",
                    )

        if nearest is not None:
            logger.info(f"Nearest {nearest.label} at {nearest.distance_meters:.2f}m ({nearest.direction.value})")
            return nearest

        return self._fallback(frame, depth_field)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _is_candidate(self, det: Detection, frame_height: int) -> bool:
        if det.class_index in self.config.obstacle_classes:
            return True
        # Large confident boxes (tables, counters) even when the class is not listed
        return (
            det.score > self.config.high_confidence
            and det.box.height > self.config.large_height_fraction * frame_height
        )

    def _label_for(self, det: Detection) -> Optional[str]:
        label = self.config.class_labels.get(det.class_index)
        if label is not None:
            return label
        if det.score >= self.config.high_confidence:
            return UNKNOWN_LABEL
        return None

    def _fallback(self, frame: Optional[np.ndarray], depth_field: Optional[DepthField]) -> ObstacleFinding:
        logger = get_navigation_logger().obstacle
        if frame is None:
            return ObstacleFinding.absent()

        if depth_field is not None and depth_field.available:
            analysis = self.depth_region_detector.analyze(frame, depth_field)
        else:
            analysis = self.region_detector.analyze(frame)
        if not analysis.is_obstacle:
            logger.debug(f"No obstacle (region proportion {analysis.proportion:.3f})")
            return ObstacleFinding.absent()

        # Without depth the region is assumed to be at the user's feet
        distance = analysis.average_depth if analysis.average_depth is not None else 0.0
        logger.info(f"Obstacle region proportion={analysis.proportion:.3f} depth={distance:.2f}m")
        return ObstacleFinding(
            present=True,
            direction=Direction.CENTER,
            distance_meters=distance,
            label=REGION_LABEL,
            imminent=distance < self.config.proximity_distance,
            source="region",
        )


__all__ = ["ObstacleFinding", "ObstacleRanker"]
