"""Tests for the command line entry point."""

from __future__ import annotations

import json

import cv2
import numpy as np
import pytest

from doorguide.main import build_parser, load_frame, main
from doorguide.utils.config import Config


@pytest.fixture()
def image_path(tmp_path):
    bgr = np.zeros((20, 40, 3), dtype=np.uint8)
    bgr[..., 2] = 255  # red in BGR
    path = tmp_path / "frame.png"
    cv2.imwrite(str(path), bgr)
    return path


def test_load_frame_converts_to_rgb_and_rotates(image_path):
    frame = load_frame(image_path)
    rotated = load_frame(image_path, rotate=90)

    assert frame.shape == (20, 40, 3)
    assert frame[0, 0].tolist() == [255, 0, 0]
    assert rotated.shape == (40, 20, 3)


def test_load_frame_missing_file(tmp_path):
    assert load_frame(tmp_path / "nope.png") is None


def test_parser_defaults(image_path):
    args = build_parser().parse_args([str(image_path)])

    assert args.rotate == 0
    assert args.json is False
    assert args.images == [image_path]


def test_json_output_without_models(image_path, tmp_path, monkeypatch: pytest.MonkeyPatch, capsys):
    # main() writes these; monkeypatch restores them afterwards
    monkeypatch.setattr(Config, "DEPTH_ENABLED", True)
    monkeypatch.setattr(Config, "OBSTACLE_DETECTION_ENABLED", True)
    monkeypatch.setattr(Config, "MODEL_DEVICE", "cpu")

    code = main([
        str(image_path),
        "--json",
        "--no-depth",
        "--no-obstacles",
        "--door-model", str(tmp_path / "missing.pt"),
        "--log-dir", str(tmp_path / "logs"),
    ])

    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    payload = json.loads(lines[-1])
    assert code == 0
    assert payload["image"] == str(image_path)
    assert payload["message"] == "Detection failed. Please try again."
    assert payload["category"] == "none"
    assert (tmp_path / "logs" / "decision_engine.log").exists()


def test_unreadable_image_sets_exit_code(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(Config, "DEPTH_ENABLED", True)
    monkeypatch.setattr(Config, "OBSTACLE_DETECTION_ENABLED", True)

    code = main([str(tmp_path / "nope.png"), "--no-depth", "--no-obstacles", "--door-model", "missing.pt"])

    assert code == 1
