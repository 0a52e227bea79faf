"""Decode raw YOLO-style output tensors into detections.

Detector variants differ in how they lay out their single output tensor:

- channel-major ``[C, N]`` (YOLOv8/YOLO11 exports) or detection-major
  ``[N, C]`` (YOLOv5 exports), optionally with a leading batch axis of 1;
- the first four channels always hold the center-form box ``x, y, w, h``;
- a fifth objectness channel is present on some variants, the remaining
  channels are per-class scores.

One ``DecoderConfig`` value describes a variant and a single routine decodes
all of them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional

import numpy as np

from doorguide.utils.config import Config
from .detection import Box, Detection
from .suppression import non_max_suppression

log = logging.getLogger("TensorDecoder")

CHANNEL_MAJOR = "channel_major"
DETECTION_MAJOR = "detection_major"
LAYOUTS = {CHANNEL_MAJOR, DETECTION_MAJOR}


class ModelConfigurationError(ValueError):
    """Raised when a model output tensor does not match its declared layout."""


@dataclass(frozen=True)
class DecoderConfig:
    """Layout and scoring description of one detector variant."""

    layout: str
    num_classes: Optional[int]
    has_objectness: bool
    normalized_coords: bool
    input_size: int
    confidence: float
    iou_threshold: float
    reject_outside_canvas: bool = False
    profile_name: str = "custom"

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"Unknown tensor layout '{self.layout}'")
        if self.num_classes is not None and self.num_classes < 1:
            raise ValueError("num_classes must be positive when declared")

    @classmethod
    def from_defaults(cls) -> "DecoderConfig":
        return cls(
            layout=CHANNEL_MAJOR,
            num_classes=4,
            has_objectness=False,
            normalized_coords=False,
            input_size=getattr(Config, "DOOR_INPUT_SIZE", 640),
            confidence=getattr(Config, "DOOR_CONFIDENCE", 0.25),
            iou_threshold=getattr(Config, "DOOR_IOU_THRESHOLD", 0.4),
            profile_name="door",
        )

    @classmethod
    def for_profile(cls, profile: str) -> "DecoderConfig":
        profile = profile.lower()
        if profile == "door":
            return cls.from_defaults()
        if profile == "door_legacy":
            # Single-class export: [1, 5, 8400], normalized coordinates
            return cls.from_defaults().with_overrides(
                profile_name="door_legacy",
                num_classes=1,
                normalized_coords=True,
                reject_outside_canvas=True,
            )
        if profile == "coco":
            return cls(
                layout=CHANNEL_MAJOR,
                num_classes=None,
                has_objectness=False,
                normalized_coords=False,
                input_size=getattr(Config, "OBSTACLE_INPUT_SIZE", 640),
                confidence=getattr(Config, "OBSTACLE_CONFIDENCE", 0.35),
                iou_threshold=getattr(Config, "OBSTACLE_IOU_THRESHOLD", 0.45),
                profile_name="coco",
            )
        if profile == "yolov5":
            return cls.for_profile("coco").with_overrides(
                profile_name="yolov5",
                layout=DETECTION_MAJOR,
                has_objectness=True,
            )
        raise ValueError(f"Unknown decoder profile '{profile}'")

    def with_overrides(self, **overrides) -> "DecoderConfig":
        mapped = {}
        for key, value in overrides.items():
            if key in {"imgsz", "input_size"}:
                mapped["input_size"] = int(value)
            elif key in {"conf", "confidence"}:
                mapped["confidence"] = float(value)
            elif key in {"iou", "iou_threshold"}:
                mapped["iou_threshold"] = float(value)
            elif key in {"nc", "num_classes"}:
                mapped["num_classes"] = None if value is None else int(value)
            elif key == "layout":
                mapped["layout"] = str(value)
            elif key in {"objectness", "has_objectness"}:
                mapped["has_objectness"] = bool(value)
            elif key in {"normalized", "normalized_coords"}:
                mapped["normalized_coords"] = bool(value)
            elif key == "reject_outside_canvas":
                mapped["reject_outside_canvas"] = bool(value)
            elif key == "profile_name":
                mapped["profile_name"] = str(value)
            else:
                raise ValueError(f"Unsupported decoder override '{key}'")

        data = asdict(self)
        data.update(mapped)
        return DecoderConfig(**data)

    def resolve_num_classes(self, channels: int) -> int:
        """Class count for a tensor with ``channels`` values per detection slot."""
        if channels < 5:
            raise ModelConfigurationError(
                f"Output has {channels} channels per detection, expected at least 5"
            )
        reserved = 5 if self.has_objectness else 4
        inferred = channels - reserved
        if inferred < 1:
            raise ModelConfigurationError(
                f"Output has {channels} channels, leaving no class scores after {reserved} reserved"
            )
        if self.num_classes is not None and self.num_classes != inferred:
            raise ModelConfigurationError(
                f"Profile '{self.profile_name}' declares {self.num_classes} classes "
                f"but the output carries {inferred}"
            )
        return inferred


def _as_rows(raw: np.ndarray, layout: str) -> np.ndarray:
    array = np.asarray(raw, dtype=np.float32)
    if array.ndim == 3 and array.shape[0] == 1:
        array = array[0]
    if array.ndim != 2:
        raise ModelConfigurationError(f"Expected a 2-D output tensor, got shape {np.shape(raw)}")
    # Rows are detection slots, columns are channels
    return array.T if layout == CHANNEL_MAJOR else array


def decode_output(raw: np.ndarray, config: DecoderConfig) -> List[Detection]:
    """Convert one raw output tensor into every candidate scoring above threshold.

    The result keeps raw slot order and is not suppressed.
    """
    rows = _as_rows(raw, config.layout)
    num_classes = config.resolve_num_classes(rows.shape[1])
    if rows.shape[0] == 0:
        return []

    offset = 5 if config.has_objectness else 4
    class_scores = rows[:, offset:offset + num_classes]
    class_index = np.argmax(class_scores, axis=1)
    best = class_scores[np.arange(rows.shape[0]), class_index]
    scores = best * rows[:, 4] if config.has_objectness else best

    geometry = rows[:, :4]
    if config.normalized_coords:
        geometry = geometry * float(config.input_size)
    cx, cy, w, h = geometry.T
    left = cx - w / 2
    top = cy - h / 2
    right = cx + w / 2
    bottom = cy + h / 2

    keep = scores > config.confidence
    inverted = keep & ((w < 0) | (h < 0))
    if np.any(inverted):
        log.debug("Dropped %d boxes with negative width or height", int(np.count_nonzero(inverted)))
        keep &= ~inverted

    if config.reject_outside_canvas:
        size = float(config.input_size)
        inside = (left >= 0) & (top >= 0) & (right <= size) & (bottom <= size)
        rejected = int(np.count_nonzero(keep & ~inside))
        if rejected:
            log.debug("Dropped %d boxes outside the %dpx canvas", rejected, config.input_size)
        keep &= inside

    if log.isEnabledFor(logging.DEBUG):
        near_miss = int(np.count_nonzero((scores > 0.1) & (scores <= config.confidence)))
        log.debug(
            "[%s] %d slots, %d above conf=%.2f, %d low-score",
            config.profile_name,
            rows.shape[0],
            int(np.count_nonzero(keep)),
            config.confidence,
            near_miss,
        )

    detections: List[Detection] = []
    for i in np.flatnonzero(keep):
        detections.append(
            Detection(
                box=Box.from_center(float(cx[i]), float(cy[i]), float(w[i]), float(h[i])),
                score=float(scores[i]),
                class_index=int(class_index[i]),
            )
        )
    return detections


class TensorDecoder:
    """Decoder bound to one detector variant."""

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        *,
        profile: Optional[str] = None,
        **overrides,
    ) -> None:
        if config is not None and (profile or overrides):
            raise ValueError("Provide either config or profile/overrides, not both")

        if config is None:
            base = (
                DecoderConfig.for_profile(profile)
                if profile is not None
                else DecoderConfig.from_defaults()
            )
            self.config = base.with_overrides(**overrides) if overrides else base
        else:
            self.config = config

        log.info(
            "Init profile=%s layout=%s classes=%s objectness=%s imgsz=%s conf=%s iou=%s",
            self.config.profile_name,
            self.config.layout,
            self.config.num_classes if self.config.num_classes is not None else "infer",
            self.config.has_objectness,
            self.config.input_size,
            self.config.confidence,
            self.config.iou_threshold,
        )

    @classmethod
    def from_profile(cls, profile: str, **overrides) -> "TensorDecoder":
        """Convenience factory that builds a decoder for a named profile."""
        return cls(profile=profile, **overrides)

    def decode(self, raw: np.ndarray) -> List[Detection]:
        return decode_output(raw, self.config)

    def detect(self, raw: np.ndarray, bypass_nms: bool = False) -> List[Detection]:
        """Decode ``raw`` and, unless bypassed, suppress overlapping boxes."""
        detections = self.decode(raw)
        if bypass_nms:
            return detections
        return non_max_suppression(detections, self.config.iou_threshold)

    def scale_to_frame(self, detections: List[Detection], frame_width: int, frame_height: int) -> List[Detection]:
        """Map canvas coordinates onto a frame of the given size."""
        size = float(self.config.input_size)
        sx = frame_width / size
        sy = frame_height / size
        if sx == 1.0 and sy == 1.0:
            return list(detections)
        return [det.scaled(sx, sy) for det in detections]


__all__ = [
    "CHANNEL_MAJOR",
    "DETECTION_MAJOR",
    "DecoderConfig",
    "ModelConfigurationError",
    "TensorDecoder",
    "decode_output",
]
