"""
Message formatter service for guidance utterances.

Centralizes the wording of every message the decision engine can emit so the
rule table only decides *which* message applies.
"""

from typing import Optional

from doorguide.utils.config import Config
from doorguide.vision.door_state import DoorState
from .zones import Direction


_DOOR_PART_NAMES = {
    "door": "Door",
    "knob": "Door knob",
    "lever": "Door lever",
}


class MessageFormatter:
    """
    Centralized service for formatting guidance messages.

    Handles:
    - Zone phrases (left / ahead / right)
    - Obstacle stop and caution messages
    - Directional door, knob and lever instructions
    - Door state and "nothing found" messages
    """

    def __init__(self):
        """Initialize message formatter with config-based zone phrases."""
        self.zone_phrases = getattr(
            Config,
            "GUIDANCE_ZONE_PHRASES",
            {"left": "on the left", "center": "ahead", "right": "on the right"},
        )

    def format_zone(self, direction: Optional[Direction]) -> str:
        """
        Format a direction to its spoken phrase.

        Examples:
            >>> formatter.format_zone(Direction.LEFT)
            "on the left"
            >>> formatter.format_zone(None)
            "ahead"
        """
        if direction is None:
            return self.zone_phrases.get("center", "ahead")
        return self.zone_phrases.get(direction.value, direction.value)

    def format_obstacle_name(self, label: str) -> str:
        label = str(label or "").strip()
        if not label:
            return "Obstacle"
        return label[0].upper() + label[1:]

    def build_stop_message(self, label: str, direction: Optional[Direction]) -> str:
        """
        Examples:
            >>> formatter.build_stop_message("obstacle", Direction.CENTER)
            "Obstacle detected ahead. Stop immediately."
            >>> formatter.build_stop_message("chair", Direction.LEFT)
            "Chair detected on the left. Stop immediately."
        """
        name = self.format_obstacle_name(label)
        return f"{name} detected {self.format_zone(direction)}. Stop immediately."

    def build_caution_message(self, label: str, distance_meters: float, direction: Optional[Direction]) -> str:
        """
        Examples:
            >>> formatter.build_caution_message("table", 1.84, Direction.RIGHT)
            "Caution: table 1.8 meters on the right."
        """
        label = str(label or "").strip() or "obstacle"
        return f"Caution: {label} {distance_meters:.1f} meters {self.format_zone(direction)}."

    def build_door_part_message(self, part: str, direction: Direction) -> str:
        """
        Directional instruction for a door, knob or lever.

        Examples:
            >>> formatter.build_door_part_message("door", Direction.LEFT)
            "Door detected on the left. Turn slightly left and walk forward."
            >>> formatter.build_door_part_message("knob", Direction.CENTER)
            "Door knob detected ahead. Walk forward and prepare to open the door."
        """
        name = _DOOR_PART_NAMES.get(part, part.capitalize())
        zone = self.format_zone(direction)

        if part == "door":
            if direction == Direction.CENTER:
                return f"{name} detected {zone}. Walk straight forward."
            return f"{name} detected {zone}. Turn slightly {direction.value} and walk forward."

        if direction == Direction.CENTER:
            return f"{name} detected {zone}. Walk forward and prepare to open the door."
        return f"{name} detected {zone}. Turn slightly {direction.value} and approach to open."

    def build_door_state_message(self, state: Optional[DoorState]) -> str:
        if state == DoorState.CLOSED:
            return "Closed door detected. Look for a handle to open it."
        if state == DoorState.OPEN:
            return "Open door detected. Proceed forward."
        if state == DoorState.SEMI_OPEN:
            return "Semi-open door detected. Proceed cautiously."
        return "Door hinge detected. A door is nearby."

    def build_nothing_message(self, anything_detected: bool) -> str:
        if anything_detected:
            return "No actionable objects detected. Try turning or walking."
        return "No door detected in sight. Try turning or walking."
