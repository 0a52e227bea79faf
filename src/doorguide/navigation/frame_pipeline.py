"""Single-frame pipeline: detectors, depth, obstacle ranking and guidance."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config import Config
from doorguide.vision.depth_decoder import DepthDecoder, DepthField
from doorguide.vision.detection import Detection
from doorguide.vision.tensor_decoder import ModelConfigurationError, TensorDecoder
from .guidance_engine import GuidanceCategory, GuidanceDecisionEngine, GuidanceOutcome
from .obstacle_ranker import ObstacleFinding, ObstacleRanker


@dataclass
class PipelineResult:
    outcome: GuidanceOutcome
    door_detections: List[Detection]
    obstacle_detections: List[Detection]
    depth_field: Optional[DepthField]
    finding: ObstacleFinding
    timings: Dict[str, float] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.outcome.to_dict()
        data.update(
            {
                "doors": len(self.door_detections),
                "obstacles": len(self.obstacle_detections),
                "obstacle": {
                    "present": self.finding.present,
                    "label": self.finding.label,
                    "distance_meters": round(self.finding.distance_meters, 2),
                    "direction": self.finding.direction.value if self.finding.direction else None,
                    "source": self.finding.source,
                },
                "timings_ms": {name: round(value, 2) for name, value in self.timings.items()},
                "failures": list(self.failures),
            }
        )
        return data


class FramePipeline:
    """Runs every configured model once on a frame and picks one utterance.

    Each detector output is decoded and suppressed on its own, then mapped
    from canvas to frame pixels. Only counters survive between frames.
    """

    def __init__(
        self,
        door_runner,
        door_decoder: TensorDecoder,
        *,
        obstacle_runner=None,
        obstacle_decoder: Optional[TensorDecoder] = None,
        depth_runner=None,
        depth_decoder: Optional[DepthDecoder] = None,
        ranker: Optional[ObstacleRanker] = None,
        engine: Optional[GuidanceDecisionEngine] = None,
        fallback_message: Optional[str] = None,
    ) -> None:
        if obstacle_runner is not None and obstacle_decoder is None:
            raise ValueError("obstacle_runner requires an obstacle_decoder")

        self.door_runner = door_runner
        self.door_decoder = door_decoder
        self.obstacle_runner = obstacle_runner
        self.obstacle_decoder = obstacle_decoder
        self.depth_runner = depth_runner
        self.depth_decoder = depth_decoder or DepthDecoder()
        self.ranker = ranker or ObstacleRanker()
        self.engine = engine or GuidanceDecisionEngine()
        self.fallback_message = fallback_message or getattr(
            Config, "FALLBACK_MESSAGE", "Detection failed. Please try again."
        )

        self.frames_processed = 0
        self.fallback_count = 0

    # ------------------------------------------------------------------
    # processing
    # ------------------------------------------------------------------

    def process(self, frame: np.ndarray) -> PipelineResult:
        """Interpret one RGB frame (H x W x 3)."""
        logger = get_navigation_logger().decision
        total_start = time.perf_counter()
        timings: Dict[str, float] = {}
        failures: List[str] = []
        frame_height, frame_width = frame.shape[:2]

        door_detections = self._detect("door", self.door_runner, self.door_decoder, frame, timings, failures)

        obstacle_detections: List[Detection] = []
        if self.obstacle_runner is not None:
            obstacle_detections = self._detect(
                "obstacle", self.obstacle_runner, self.obstacle_decoder, frame, timings, failures
            )

        depth_field = self._estimate_depth(frame, timings, failures)

        start = time.perf_counter()
        try:
            finding = self.ranker.rank(obstacle_detections, depth_field, frame_width, frame_height, frame)
        except Exception as err:  # noqa: BLE001
            get_navigation_logger().obstacle.error(f"Obstacle ranking failed: {err}")
            failures.append("ranking")
            finding = ObstacleFinding.absent()
        timings["ranking"] = (time.perf_counter() - start) * 1000.0

        start = time.perf_counter()
        if self._all_failed(failures) and not finding.present:
            self.fallback_count += 1
            outcome = GuidanceOutcome(self.fallback_message, GuidanceCategory.NONE)
            logger.warning(f"Every model failed ({', '.join(failures)}), emitting fallback")
        else:
            outcome = self.engine.decide(door_detections, finding, frame_width, frame)
        timings["decision"] = (time.perf_counter() - start) * 1000.0
        timings["total"] = (time.perf_counter() - total_start) * 1000.0

        self.frames_processed += 1
        return PipelineResult(
            outcome=outcome,
            door_detections=door_detections,
            obstacle_detections=obstacle_detections,
            depth_field=depth_field,
            finding=finding,
            timings=timings,
            failures=failures,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _detect(
        self,
        name: str,
        runner,
        decoder: TensorDecoder,
        frame: np.ndarray,
        timings: Dict[str, float],
        failures: List[str],
    ) -> List[Detection]:
        logger = get_navigation_logger().vision
        start = time.perf_counter()
        try:
            raw = runner.run(frame) if runner is not None else None
        except Exception as err:  # noqa: BLE001
            logger.warning(f"{name} inference raised: {err}")
            raw = None

        if raw is None:
            logger.warning(f"{name} model unavailable, using empty detection set")
            failures.append(name)
            timings[name] = (time.perf_counter() - start) * 1000.0
            return []

        try:
            detections = decoder.detect(raw)
        except ModelConfigurationError:
            raise
        except Exception as err:  # noqa: BLE001
            logger.warning(f"{name} decoding failed: {err}")
            failures.append(name)
            timings[name] = (time.perf_counter() - start) * 1000.0
            return []

        frame_height, frame_width = frame.shape[:2]
        detections = decoder.scale_to_frame(detections, frame_width, frame_height)
        timings[name] = (time.perf_counter() - start) * 1000.0
        logger.debug(f"{name}: {len(detections)} detections after suppression")
        return detections

    def _estimate_depth(
        self,
        frame: np.ndarray,
        timings: Dict[str, float],
        failures: List[str],
    ) -> Optional[DepthField]:
        if self.depth_runner is None:
            return None

        start = time.perf_counter()
        try:
            raw = self.depth_runner.run(frame)
        except Exception as err:  # noqa: BLE001
            get_navigation_logger().depth.warning(f"Depth inference raised: {err}")
            raw = None

        depth_field = self.depth_decoder.decode(raw)
        if not depth_field.available:
            failures.append("depth")
        timings["depth"] = (time.perf_counter() - start) * 1000.0
        return depth_field

    def _all_failed(self, failures: List[str]) -> bool:
        attempted = ["door"]
        if self.obstacle_runner is not None:
            attempted.append("obstacle")
        if self.depth_runner is not None:
            attempted.append("depth")
        return all(name in failures for name in attempted)


__all__ = ["FramePipeline", "PipelineResult"]
