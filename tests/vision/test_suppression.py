"""Tests for IoU and greedy non-maximum suppression."""

from __future__ import annotations

import pytest

from doorguide.vision.detection import Box, Detection
from doorguide.vision.suppression import iou, non_max_suppression


def make_detection(left, top, right, bottom, score, class_index=0) -> Detection:
    return Detection(box=Box(left, top, right, bottom), score=score, class_index=class_index)


def test_iou_of_box_with_itself_is_one():
    box = Box(10, 20, 110, 220)
    assert iou(box, box) == pytest.approx(1.0)


def test_iou_is_symmetric_and_bounded():
    a = Box(0, 0, 10, 10)
    b = Box(5, 5, 20, 20)

    assert iou(a, b) == pytest.approx(iou(b, a))
    assert 0.0 <= iou(a, b) <= 1.0


def test_iou_disjoint_and_degenerate_boxes_are_zero():
    assert iou(Box(0, 0, 10, 10), Box(20, 20, 30, 30)) == 0.0
    point = Box(5, 5, 5, 5)
    assert iou(point, point) == 0.0


def test_identical_boxes_reduce_to_highest_score():
    detections = [
        make_detection(0, 0, 50, 50, 0.6, class_index=1),
        make_detection(0, 0, 50, 50, 0.9, class_index=2),
        make_detection(0, 0, 50, 50, 0.7, class_index=3),
    ]

    kept = non_max_suppression(detections, 0.4)

    assert len(kept) == 1
    assert kept[0].class_index == 2


def test_output_is_sorted_subset_with_low_mutual_overlap():
    detections = [
        make_detection(0, 0, 10, 10, 0.3),
        make_detection(100, 100, 120, 120, 0.8),
        make_detection(1, 1, 11, 11, 0.5),
        make_detection(200, 0, 260, 40, 0.6),
    ]

    kept = non_max_suppression(detections, 0.4)

    assert [det.score for det in kept] == [0.8, 0.6, 0.5]
    assert all(det in detections for det in kept)
    for i, a in enumerate(kept):
        for b in kept[i + 1:]:
            assert iou(a.box, b.box) <= 0.4


def test_equal_scores_keep_first_seen():
    detections = [
        make_detection(0, 0, 40, 40, 0.5, class_index=7),
        make_detection(0, 0, 40, 40, 0.5, class_index=8),
    ]

    kept = non_max_suppression(detections, 0.4)

    assert [det.class_index for det in kept] == [7]


def test_overlap_equal_to_threshold_is_kept():
    detections = [
        make_detection(0, 0, 10, 10, 0.9),
        make_detection(0, 0, 10, 5, 0.8),
    ]

    assert len(non_max_suppression(detections, 0.5)) == 2
    assert len(non_max_suppression(detections, 0.49)) == 1


def test_empty_input():
    assert non_max_suppression([], 0.4) == []
