"""Tests for raw detector tensor decoding and decoder profiles."""

from __future__ import annotations

import numpy as np
import pytest

from doorguide.vision.tensor_decoder import (
    DETECTION_MAJOR,
    DecoderConfig,
    ModelConfigurationError,
    TensorDecoder,
    decode_output,
)


def channel_major(num_channels: int, slots: int = 16) -> np.ndarray:
    return np.zeros((1, num_channels, slots), dtype=np.float32)


def test_injected_slot_decodes_to_one_detection():
    raw = channel_major(8)
    raw[0, :4, 3] = [320, 320, 100, 200]
    raw[0, 4:, 3] = [0.1, 0.2, 0.9, 0.05]

    detections = decode_output(raw, DecoderConfig.from_defaults())

    assert len(detections) == 1
    det = detections[0]
    assert det.class_index == 2
    assert det.score == pytest.approx(0.9)
    assert (det.box.left, det.box.top, det.box.right, det.box.bottom) == pytest.approx((270, 220, 370, 420))


def test_batch_axis_is_optional_and_order_follows_slots():
    raw = channel_major(8)[0]
    raw[:4, 1] = [100, 100, 20, 20]
    raw[4, 1] = 0.5
    raw[:4, 9] = [400, 100, 20, 20]
    raw[7, 9] = 0.8

    detections = decode_output(raw, DecoderConfig.from_defaults())

    assert [det.class_index for det in detections] == [0, 3]


def test_score_equal_to_threshold_is_rejected():
    raw = channel_major(8)
    raw[0, :4, 0] = [50, 50, 10, 10]
    raw[0, 4, 0] = 0.25

    config = DecoderConfig.from_defaults().with_overrides(conf=0.25)

    assert decode_output(raw, config) == []


def test_detection_major_with_objectness_multiplies_scores():
    raw = np.zeros((6, 85), dtype=np.float32)
    raw[0, :5] = [200, 200, 40, 80, 0.8]
    raw[0, 5 + 56] = 0.9
    raw[1, :5] = [400, 200, 40, 80, 0.3]
    raw[1, 5 + 0] = 0.9

    config = DecoderConfig.for_profile("yolov5")
    detections = decode_output(raw, config)

    assert config.layout == DETECTION_MAJOR
    assert len(detections) == 1
    assert detections[0].class_index == 56
    assert detections[0].score == pytest.approx(0.72)


def test_coco_profile_infers_class_count():
    raw = channel_major(84)
    raw[0, :4, 5] = [320, 320, 64, 64]
    raw[0, 4 + 60, 5] = 0.95

    detections = TensorDecoder.from_profile("coco").decode(raw)

    assert [det.class_index for det in detections] == [60]


def test_legacy_profile_scales_normalized_coords_and_rejects_outside_canvas():
    raw = channel_major(5)
    raw[0, :, 0] = [0.5, 0.5, 0.25, 0.5, 0.9]
    raw[0, :, 1] = [0.02, 0.5, 0.1, 0.1, 0.9]

    detections = TensorDecoder.from_profile("door_legacy").decode(raw)

    assert len(detections) == 1
    box = detections[0].box
    assert (box.left, box.top, box.right, box.bottom) == pytest.approx((240, 160, 400, 480))


def test_too_few_channels_raise():
    with pytest.raises(ModelConfigurationError):
        decode_output(np.zeros((4, 10), dtype=np.float32), DecoderConfig.from_defaults())


def test_declared_class_count_must_match_tensor():
    with pytest.raises(ModelConfigurationError):
        decode_output(channel_major(6), DecoderConfig.from_defaults())


def test_non_two_dimensional_output_raises():
    with pytest.raises(ModelConfigurationError):
        decode_output(np.zeros((2, 8, 10), dtype=np.float32), DecoderConfig.from_defaults())


def test_empty_tensor_yields_no_detections():
    assert decode_output(np.zeros((8, 0), dtype=np.float32), DecoderConfig.from_defaults()) == []


def test_defaults_reference_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("doorguide.utils.config.Config.DOOR_CONFIDENCE", 0.5)
    monkeypatch.setattr("doorguide.utils.config.Config.DOOR_INPUT_SIZE", 320)

    config = DecoderConfig.from_defaults()

    assert config.confidence == 0.5
    assert config.input_size == 320
    assert config.num_classes == 4


def test_with_overrides_accepts_aliases():
    base = DecoderConfig.from_defaults()
    updated = base.with_overrides(imgsz=512, conf=0.7, iou=0.3, nc=None, objectness=True)

    assert updated.input_size == 512
    assert updated.confidence == 0.7
    assert updated.iou_threshold == 0.3
    assert updated.num_classes is None
    assert updated.has_objectness is True
    assert base.confidence != 0.7

    with pytest.raises(ValueError):
        base.with_overrides(unsupported=1)


def test_unknown_profile_and_layout_raise():
    with pytest.raises(ValueError):
        DecoderConfig.for_profile("unknown")
    with pytest.raises(ValueError):
        DecoderConfig.from_defaults().with_overrides(layout="sideways")


def test_config_and_profile_are_exclusive():
    with pytest.raises(ValueError):
        TensorDecoder(DecoderConfig.from_defaults(), profile="coco")


def test_detect_suppresses_unless_bypassed():
    raw = channel_major(8)
    raw[0, :4, 0] = [100, 100, 50, 50]
    raw[0, 4, 0] = 0.9
    raw[0, :4, 1] = [102, 100, 50, 50]
    raw[0, 4, 1] = 0.8

    decoder = TensorDecoder()

    assert len(decoder.detect(raw)) == 1
    assert len(decoder.detect(raw, bypass_nms=True)) == 2


def test_scale_to_frame_maps_canvas_to_frame_pixels():
    raw = channel_major(8)
    raw[0, :4, 0] = [320, 320, 64, 64]
    raw[0, 4, 0] = 0.9

    decoder = TensorDecoder()
    scaled = decoder.scale_to_frame(decoder.detect(raw), 1280, 960)

    box = scaled[0].box
    assert (box.left, box.top, box.right, box.bottom) == pytest.approx((576, 432, 704, 528))


def test_negative_width_or_height_slots_are_dropped():
    raw = channel_major(8)
    raw[0, :4, 0] = [100, 100, -40, 50]
    raw[0, 4, 0] = 0.9
    raw[0, :4, 1] = [300, 100, 40, -50]
    raw[0, 4, 1] = 0.9
    raw[0, :4, 2] = [500, 100, 40, 50]
    raw[0, 4, 2] = 0.9

    detections = decode_output(raw, DecoderConfig.from_defaults())

    assert len(detections) == 1
    assert all(d.box.left <= d.box.right and d.box.top <= d.box.bottom for d in detections)
    assert detections[0].center_x == pytest.approx(500)
