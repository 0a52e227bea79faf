"""Decision engine turning one frame's detections into a single guidance utterance."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config_sections import GuidanceConfig, load_guidance_config
from doorguide.vision.detection import Detection
from doorguide.vision.door_state import DoorStateClassifier
from .message_formatter import MessageFormatter
from .obstacle_ranker import ObstacleFinding
from .zones import classify_zone


class GuidanceCategory(str, Enum):
    OBSTACLE_ALERT = "obstacle-alert"
    DOOR = "door"
    HANDLE = "handle"
    LEVER = "lever"
    NONE = "none"


@dataclass(frozen=True)
class GuidanceOutcome:
    """The one message spoken for a frame."""

    message: str
    category: GuidanceCategory

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "category": self.category.value}


class GuidanceDecisionEngine:
    """Applies the fixed priority table, first matching rule wins.

    1. Imminent obstacle (stop)
    2. Obstacle within caution range
    3. Door
    4. Door knob
    5. Door lever
    6. Hinge only (door state when a classifier is wired)
    7. Nothing actionable
    """

    def __init__(
        self,
        config: Optional[GuidanceConfig] = None,
        *,
        formatter: Optional[MessageFormatter] = None,
        door_state_classifier: Optional[DoorStateClassifier] = None,
        **overrides,
    ) -> None:
        base = config or load_guidance_config()
        self.config = replace(base, **overrides) if overrides else base
        self.formatter = formatter or MessageFormatter()
        self.door_state_classifier = door_state_classifier

    # ------------------------------------------------------------------
    # decision
    # ------------------------------------------------------------------

    def decide(
        self,
        detections: Sequence[Detection],
        finding: Optional[ObstacleFinding],
        frame_width: int,
        frame: Optional[np.ndarray] = None,
    ) -> GuidanceOutcome:
        outcome = self._evaluate(detections, finding, frame_width, frame)
        get_navigation_logger().decision.info(f"[{outcome.category.value}] {outcome.message}")
        return outcome

    def _evaluate(
        self,
        detections: Sequence[Detection],
        finding: Optional[ObstacleFinding],
        frame_width: int,
        frame: Optional[np.ndarray],
    ) -> GuidanceOutcome:
        logger = get_navigation_logger().decision
        fmt = self.formatter

        if finding is not None and finding.present:
            if finding.distance_meters < self.config.proximity_distance:
                return GuidanceOutcome(
                    fmt.build_stop_message(finding.label, finding.direction),
                    GuidanceCategory.OBSTACLE_ALERT,
                )
            if finding.distance_meters < self.config.caution_distance:
                return GuidanceOutcome(
                    fmt.build_caution_message(finding.label, finding.distance_meters, finding.direction),
                    GuidanceCategory.OBSTACLE_ALERT,
                )
            logger.debug(f"Obstacle {finding.label} at {finding.distance_meters:.2f}m beyond caution range")

        door = self._first_of(detections, self.config.door_class)
        if door is not None:
            direction = classify_zone(door.center_x, frame_width)
            return GuidanceOutcome(fmt.build_door_part_message("door", direction), GuidanceCategory.DOOR)

        knob = self._first_of(detections, self.config.knob_class)
        if knob is not None:
            direction = classify_zone(knob.center_x, frame_width)
            return GuidanceOutcome(fmt.build_door_part_message("knob", direction), GuidanceCategory.HANDLE)

        lever = self._first_of(detections, self.config.lever_class)
        if lever is not None:
            direction = classify_zone(lever.center_x, frame_width)
            return GuidanceOutcome(fmt.build_door_part_message("lever", direction), GuidanceCategory.LEVER)

        hinge = self._first_of(detections, self.config.hinged_class)
        if hinge is not None:
            state = None
            if self.config.door_state_enabled and self.door_state_classifier is not None and frame is not None:
                state = self.door_state_classifier.classify(frame, hinge.box)
            return GuidanceOutcome(fmt.build_door_state_message(state), GuidanceCategory.DOOR)

        return GuidanceOutcome(fmt.build_nothing_message(bool(detections)), GuidanceCategory.NONE)

    @staticmethod
    def _first_of(detections: Sequence[Detection], class_index: int) -> Optional[Detection]:
        for det in detections:
            if det.class_index == class_index:
                return det
        return None


__all__ = ["GuidanceCategory", "GuidanceDecisionEngine", "GuidanceOutcome"]
