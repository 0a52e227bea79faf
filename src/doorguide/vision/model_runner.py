"""PyTorch inference adapters producing raw output tensors as NumPy arrays.

The pipeline only needs ``run(frame) -> ndarray | None``; anything exposing
that method (including test fakes) can replace a ModelRunner.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Sequence

import cv2
import numpy as np
import torch

from .gpu_utils import empty_mps_cache, get_preferred_device

log = logging.getLogger("ModelRunner")

# ImageNet statistics used by the MiDaS small transform
MIDAS_MEAN = (0.485, 0.456, 0.406)
MIDAS_STD = (0.229, 0.224, 0.225)


def _first_output(output: Any) -> torch.Tensor:
    """Detection heads return (predictions, features); keep the predictions."""
    if isinstance(output, (list, tuple)):
        return _first_output(output[0])
    if isinstance(output, dict):
        return _first_output(next(iter(output.values())))
    return output


class ModelRunner:
    """Runs one torch module on an RGB frame resized to a square canvas."""

    def __init__(
        self,
        module: torch.nn.Module,
        *,
        input_size: int,
        device: str = "cpu",
        layout: str = "nchw",
        mean: Optional[Sequence[float]] = None,
        std: Optional[Sequence[float]] = None,
        name: str = "model",
    ) -> None:
        layout = layout.lower()
        if layout not in {"nchw", "nhwc"}:
            raise ValueError(f"Unsupported input layout '{layout}'")

        self.name = name
        self.input_size = int(input_size)
        self.layout = layout
        self.device = get_preferred_device(device)
        self.mean = np.asarray(mean, dtype=np.float32) if mean is not None else None
        self.std = np.asarray(std, dtype=np.float32) if std is not None else None
        self.last_inference_ms = 0.0

        self.module = module.to(self.device)
        self.module.eval()
        log.info("[%s] ready on %s (imgsz=%d, layout=%s)", name, self.device.type, self.input_size, layout)

    # ------------------------------------------------------------------
    # loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_torchscript(cls, path: str, **kwargs) -> "ModelRunner":
        module = torch.jit.load(str(path), map_location="cpu")
        return cls(module, **kwargs)

    @classmethod
    def from_yolo(cls, path: str, **kwargs) -> "ModelRunner":
        """Load Ultralytics weights and keep the bare detection network.

        The raw head output is ``[1, 4 + nc, N]`` in canvas pixels, the
        layout the tensor decoder expects for the channel-major profiles.
        """
        from ultralytics import YOLO

        network = YOLO(str(path)).model.float()
        kwargs.setdefault("name", "yolo")
        return cls(network, **kwargs)

    @classmethod
    def from_midas(cls, model_name: str = "MiDaS_small", **kwargs) -> "ModelRunner":
        module = torch.hub.load("intel-isl/MiDaS", model_name)
        kwargs.setdefault("input_size", 256)
        kwargs.setdefault("mean", MIDAS_MEAN)
        kwargs.setdefault("std", MIDAS_STD)
        kwargs.setdefault("name", model_name)
        return cls(module, **kwargs)

    # ------------------------------------------------------------------
    # inference
    # ------------------------------------------------------------------

    def preprocess(self, frame: np.ndarray) -> torch.Tensor:
        """Resize to the canvas, scale to [0, 1] and lay out as a batch of one."""
        resized = cv2.resize(frame, (self.input_size, self.input_size), interpolation=cv2.INTER_LINEAR)
        image = resized.astype(np.float32) / 255.0
        if self.mean is not None and self.std is not None:
            image = (image - self.mean) / self.std
        if self.layout == "nchw":
            image = np.transpose(image, (2, 0, 1))
        batch = np.ascontiguousarray(image[np.newaxis, ...])
        return torch.from_numpy(batch).to(self.device)

    def run(self, frame: np.ndarray) -> Optional[np.ndarray]:
        """Return the first output tensor, or None when inference fails."""
        start = time.perf_counter()
        try:
            tensor = self.preprocess(frame)
            with torch.inference_mode():
                output = _first_output(self.module(tensor))
            result = output.detach().float().cpu().numpy()
        except Exception as err:  # noqa: BLE001
            log.warning("[%s] inference failed: %s", self.name, err)
            return None
        finally:
            if self.device.type == "mps":
                empty_mps_cache()

        self.last_inference_ms = (time.perf_counter() - start) * 1000.0
        log.debug("[%s] output %s in %.1fms", self.name, tuple(result.shape), self.last_inference_ms)
        return result


__all__ = ["ModelRunner"]
