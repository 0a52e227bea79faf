"""Tests for depth-fused obstacle ranking and its region fallback."""

from __future__ import annotations

import numpy as np
import pytest

from doorguide.navigation.obstacle_ranker import ObstacleFinding, ObstacleRanker
from doorguide.navigation.zones import Direction
from doorguide.vision.depth_decoder import DepthField
from doorguide.vision.detection import Box, Detection

FRAME_W = 100
FRAME_H = 100


def make_field(background: float = 8.0) -> np.ndarray:
    # 10x10 grid over a 100x100 frame: one cell per 10 pixels
    return np.full((10, 10), background, dtype=np.float32)


def as_field(values: np.ndarray) -> DepthField:
    return DepthField(values=values, max_depth=10.0)


def chair(left, top, right, bottom, score=0.8) -> Detection:
    return Detection(box=Box(left, top, right, bottom), score=score, class_index=56)


@pytest.fixture()
def ranker() -> ObstacleRanker:
    return ObstacleRanker()


def test_nearest_listed_obstacle_with_direction(ranker):
    values = make_field()
    values[4:10, 0:2] = 2.0
    detections = [chair(0, 40, 15, 95)]

    finding = ranker.rank(detections, as_field(values), FRAME_W, FRAME_H)

    assert finding.present
    assert finding.label == "chair"
    assert finding.direction == Direction.LEFT
    assert finding.distance_meters == pytest.approx(2.0)
    assert not finding.imminent
    assert finding.source == "detector"


def test_minimum_distance_wins(ranker):
    values = make_field()
    values[0:3, 0:3] = 2.5
    values[0:3, 7:10] = 1.2
    detections = [chair(0, 0, 25, 25), chair(70, 0, 95, 25)]

    finding = ranker.rank(detections, as_field(values), FRAME_W, FRAME_H)

    assert finding.distance_meters == pytest.approx(1.2)
    assert finding.direction == Direction.RIGHT


def test_first_candidate_within_proximity_short_circuits(ranker):
    values = make_field()
    values[0:3, 0:3] = 0.4
    values[0:3, 7:10] = 0.2
    detections = [chair(0, 0, 25, 25), chair(70, 0, 95, 25)]

    finding = ranker.rank(detections, as_field(values), FRAME_W, FRAME_H)

    assert finding.imminent
    assert finding.distance_meters == pytest.approx(0.4)


def test_large_confident_unlisted_object_is_unknown_obstacle(ranker):
    values = make_field()
    values[2:9, 4:6] = 1.8
    big = Detection(box=Box(40, 20, 59, 89), score=0.9, class_index=99)

    finding = ranker.rank([big], as_field(values), FRAME_W, FRAME_H)

    assert finding.label == "unknown obstacle"
    assert finding.direction == Direction.CENTER


def test_small_or_unlisted_objects_are_ignored(ranker):
    car = Detection(box=Box(40, 40, 50, 50), score=0.95, class_index=2)
    low = Detection(box=Box(40, 0, 60, 90), score=0.6, class_index=99)

    finding = ranker.rank([car, low], as_field(make_field(1.0)), FRAME_W, FRAME_H)

    assert finding == ObstacleFinding.absent()


def test_listed_class_without_label_needs_high_confidence():
    ranker = ObstacleRanker(obstacle_classes=frozenset({5}), class_labels={})
    bus = Detection(box=Box(40, 40, 60, 60), score=0.5, class_index=5)
    confident_bus = Detection(box=Box(40, 40, 60, 60), score=0.75, class_index=5)
    field = as_field(make_field(2.0))

    assert not ranker.rank([bus], field, FRAME_W, FRAME_H).present
    assert ranker.rank([confident_bus], field, FRAME_W, FRAME_H).label == "unknown obstacle"


def test_zero_depth_boxes_are_skipped(ranker):
    values = make_field(3.5)
    values[0:3, 0:3] = 0.0
    detections = [chair(0, 0, 25, 25), chair(70, 70, 95, 95)]

    finding = ranker.rank(detections, as_field(values), FRAME_W, FRAME_H)

    assert finding.distance_meters == pytest.approx(3.5)
    assert finding.direction == Direction.RIGHT


def test_detections_need_available_depth(ranker):
    finding = ranker.rank([chair(0, 0, 25, 25)], DepthField.zeros(10, 10, 10.0), FRAME_W, FRAME_H)

    assert not finding.present


def test_region_fallback_without_depth_is_imminent(ranker):
    frame = np.full((FRAME_H, FRAME_W, 3), 200, dtype=np.uint8)
    frame[80:, :50] = 0

    finding = ranker.rank([], None, FRAME_W, FRAME_H, frame)

    assert finding.present
    assert finding.label == "obstacle"
    assert finding.direction == Direction.CENTER
    assert finding.distance_meters == 0.0
    assert finding.imminent
    assert finding.source == "region"


def test_region_fallback_uses_region_depth(ranker):
    frame = np.full((FRAME_H, FRAME_W, 3), 200, dtype=np.uint8)
    frame[80:, :50] = 0
    values = make_field(1.2)

    finding = ranker.rank([], as_field(values), FRAME_W, FRAME_H, frame)

    assert finding.present
    assert finding.distance_meters == pytest.approx(1.2)
    assert not finding.imminent


def test_no_frame_means_no_fallback(ranker):
    assert ranker.rank([], None, FRAME_W, FRAME_H) == ObstacleFinding.absent()


def test_band_above_plain_scan_is_ignored_without_depth(ranker):
    frame = np.full((FRAME_H, FRAME_W, 3), 200, dtype=np.uint8)
    frame[55:70, :] = 0

    assert ranker.rank([], None, FRAME_W, FRAME_H, frame) == ObstacleFinding.absent()
    assert ranker.rank([], DepthField.zeros(10, 10, 10.0), FRAME_W, FRAME_H, frame) == ObstacleFinding.absent()


def test_taller_scan_is_used_with_depth(ranker):
    frame = np.full((FRAME_H, FRAME_W, 3), 200, dtype=np.uint8)
    frame[55:70, :] = 0

    finding = ranker.rank([], as_field(make_field(1.0)), FRAME_W, FRAME_H, frame)

    assert ranker.region_detector.config.lower_fraction == 0.3
    assert ranker.depth_region_detector.config.lower_fraction == 0.5
    assert finding.present
    assert finding.distance_meters == pytest.approx(1.0)
