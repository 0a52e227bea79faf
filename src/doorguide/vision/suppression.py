"""Greedy non-maximum suppression over decoded detections."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .detection import Box, Detection

log = logging.getLogger(__name__)


def iou(a: Box, b: Box) -> float:
    """Intersection-over-union of two corner-form boxes, 0.0 when the union is empty."""
    x1 = max(a.left, b.left)
    y1 = max(a.top, b.top)
    x2 = min(a.right, b.right)
    y2 = min(a.bottom, b.bottom)

    intersection = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = a.area + b.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union


def non_max_suppression(detections: Sequence[Detection], iou_threshold: float) -> List[Detection]:
    """Keep the highest-scoring boxes, dropping any that overlap a kept box by more than ``iou_threshold``.

    The sort is stable, so among equal scores the detection seen first in the
    raw tensor wins.
    """
    ordered = sorted(detections, key=lambda det: det.score, reverse=True)
    selected: List[Detection] = []

    for det in ordered:
        keep = True
        for kept in selected:
            if iou(det.box, kept.box) > iou_threshold:
                keep = False
                break
        if keep:
            selected.append(det)

    log.debug("NMS kept %d of %d detections (iou>%.2f)", len(selected), len(detections), iou_threshold)
    return selected


__all__ = ["iou", "non_max_suppression"]
