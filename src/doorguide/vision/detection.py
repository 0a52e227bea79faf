"""
Detection data structures for decoded detector output.

This module defines the immutable Box and Detection dataclasses produced by
the tensor decoder and consumed by suppression, obstacle ranking and the
guidance engine. A list of detections from one model run on one frame is
referred to as a detection set.

Usage:
    det = Detection(
        box=Box(left=100.0, top=150.0, right=200.0, bottom=300.0),
        score=0.91,
        class_index=0,
    )
    det.center_x  # 150.0
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned rectangle in corner form.

    Attributes:
        left: Minimum x coordinate (pixels)
        top: Minimum y coordinate (pixels)
        right: Maximum x coordinate (pixels)
        bottom: Maximum y coordinate (pixels)
    """
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "Box":
        """Convert a center-form box (cx, cy, w, h) into corner form."""
        return cls(cx - w / 2, cy - h / 2, cx + w / 2, cy + h / 2)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2

    def scaled(self, sx: float, sy: float) -> "Box":
        return Box(self.left * sx, self.top * sy, self.right * sx, self.bottom * sy)


@dataclass(frozen=True)
class Detection:
    """
    A single decoded detector candidate.

    Attributes:
        box: Corner-form bounding box in pixel coordinates
        score: Objectness x best class probability, or the raw class score
            for single-class models (0-1)
        class_index: Index of the best-scoring class
    """
    box: Box
    score: float
    class_index: int

    @property
    def center_x(self) -> float:
        return self.box.center_x

    def scaled(self, sx: float, sy: float) -> "Detection":
        return Detection(self.box.scaled(sx, sy), self.score, self.class_index)
