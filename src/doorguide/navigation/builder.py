"""
🏗️ Builder for the DoorGuide frame pipeline.

Components read Config internally; the builder only decides which optional
models get wired in and tolerates models that fail to load.
"""

from pathlib import Path
from typing import Optional

from doorguide.telemetry.navigation_logger import get_navigation_logger
from doorguide.utils.config import Config
from doorguide.utils.config_sections import load_depth_config, load_pipeline_config
from doorguide.vision.depth_decoder import DepthDecoder
from doorguide.vision.door_state import DoorStateClassifier
from doorguide.vision.model_runner import ModelRunner
from doorguide.vision.tensor_decoder import TensorDecoder
from .frame_pipeline import FramePipeline
from .guidance_engine import GuidanceDecisionEngine
from .obstacle_ranker import ObstacleRanker


class Builder:
    """Builder that creates every dependency of the frame pipeline."""

    def __init__(self):
        self.pipeline_config = load_pipeline_config()
        self.depth_config = load_depth_config()

    def _runner_kwargs(self, input_size: int, name: str) -> dict:
        return {
            "input_size": input_size,
            "device": self.pipeline_config.device,
            "layout": self.pipeline_config.input_layout,
            "name": name,
        }

    def build_door_runner(self, model_path: Optional[str] = None) -> Optional[ModelRunner]:
        print("  📦 Creating door detector...")
        path = model_path or self.pipeline_config.door_model_path
        return self._load_yolo(path, getattr(Config, "DOOR_INPUT_SIZE", 640), "door")

    def build_obstacle_runner(self, model_path: Optional[str] = None) -> Optional[ModelRunner]:
        if not self.pipeline_config.obstacle_detection_enabled:
            print("  ⏭️ Obstacle detector disabled")
            return None
        path = model_path or self.pipeline_config.obstacle_model_path
        if not path:
            return None
        print("  📦 Creating obstacle detector...")
        return self._load_yolo(path, getattr(Config, "OBSTACLE_INPUT_SIZE", 640), "obstacle")

    def build_depth_runner(self) -> Optional[ModelRunner]:
        if not self.depth_config.enabled:
            print("  ⏭️ Depth estimation disabled")
            return None
        print(f"  📦 Creating depth estimator ({self.depth_config.model_name})...")
        try:
            return ModelRunner.from_midas(
                self.depth_config.model_name,
                device=self.pipeline_config.device,
                input_size=self.depth_config.grid_size,
            )
        except Exception as err:  # noqa: BLE001
            get_navigation_logger().depth.warning(f"Depth model unavailable: {err}")
            return None

    def build_door_state_classifier(self, model_path: Optional[str] = None) -> Optional[DoorStateClassifier]:
        path = model_path or self.pipeline_config.door_state_model_path
        if not path:
            return None
        print("  📦 Creating door state classifier...")
        try:
            runner = ModelRunner.from_torchscript(
                path,
                **self._runner_kwargs(getattr(Config, "DOOR_STATE_INPUT_SIZE", 224), "door_state"),
            )
        except Exception as err:  # noqa: BLE001
            get_navigation_logger().vision.warning(f"Door state model unavailable: {err}")
            return None
        return DoorStateClassifier(runner)

    def build_decision_engine(self, door_state_classifier: Optional[DoorStateClassifier] = None) -> GuidanceDecisionEngine:
        print("  📦 Creating GuidanceDecisionEngine...")
        if door_state_classifier is not None:
            return GuidanceDecisionEngine(door_state_classifier=door_state_classifier, door_state_enabled=True)
        return GuidanceDecisionEngine()

    def build_pipeline(
        self,
        *,
        door_model: Optional[str] = None,
        obstacle_model: Optional[str] = None,
        door_state_model: Optional[str] = None,
    ) -> FramePipeline:
        door_runner = self.build_door_runner(door_model)
        obstacle_runner = self.build_obstacle_runner(obstacle_model)
        depth_runner = self.build_depth_runner()
        classifier = self.build_door_state_classifier(door_state_model)

        print("  📦 Creating FramePipeline...")
        return FramePipeline(
            door_runner,
            TensorDecoder.from_profile(getattr(Config, "DOOR_PROFILE", "door")),
            obstacle_runner=obstacle_runner,
            obstacle_decoder=(
                TensorDecoder.from_profile(getattr(Config, "OBSTACLE_PROFILE", "coco"))
                if obstacle_runner is not None
                else None
            ),
            depth_runner=depth_runner,
            depth_decoder=DepthDecoder(self.depth_config.grid_size, self.depth_config.max_depth),
            ranker=ObstacleRanker(),
            engine=self.build_decision_engine(classifier),
            fallback_message=self.pipeline_config.fallback_message,
        )

    def _load_yolo(self, path: str, input_size: int, name: str) -> Optional[ModelRunner]:
        if not Path(path).exists():
            get_navigation_logger().vision.warning(f"{name} weights not found: {path}")
            return None
        try:
            return ModelRunner.from_yolo(path, **self._runner_kwargs(input_size, name))
        except Exception as err:  # noqa: BLE001
            get_navigation_logger().vision.warning(f"{name} model failed to load: {err}")
            return None


__all__ = ["Builder"]
