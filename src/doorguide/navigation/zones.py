"""Horizontal zoning shared by every guidance message."""

from enum import Enum


class Direction(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


def classify_zone(center_x: float, frame_width: float) -> Direction:
    """Left fifth, right fifth, everything else is ahead."""
    if center_x < frame_width / 5:
        return Direction.LEFT
    if center_x > 4 * frame_width / 5:
        return Direction.RIGHT
    return Direction.CENTER


__all__ = ["Direction", "classify_zone"]
