"""
Typed configuration sections for DoorGuide.

Each section groups the Config constants one component needs:
- ObstacleRegionConfig: lower-slice scan and its depth gate
- ObstacleRankingConfig: obstacle class set, labels and alert distances
- DepthConfig: depth grid and horizon
- GuidanceConfig: door model class indices and alert distances
- PipelineConfig: model paths, device and fallback message

Components accept a section instance, so tests can pass one directly instead
of patching Config.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


@dataclass
class ObstacleRegionConfig:
    """Configuration for the lower-region (intensity based) obstacle detector."""

    # Portion of the frame scanned, measured from the bottom edge
    lower_fraction: float = 0.3

    # Largest dark region share required to report an obstacle
    proportion_threshold: float = 0.15

    # Binarization threshold = mean luma - offset
    threshold_offset: int = 20

    # Depth gating (only applied when a depth field is available)
    depth_proportion_threshold: float = 0.1
    depth_cutoff: float = 1.5
    max_span_fraction: float = 0.9


@dataclass
class ObstacleRankingConfig:
    """Configuration for depth-fused obstacle ranking."""

    obstacle_classes: FrozenSet[int] = field(default_factory=frozenset)
    class_labels: Dict[int, str] = field(default_factory=dict)

    proximity_distance: float = 0.5  # meters, "stop" alert
    caution_distance: float = 3.0  # meters, cautionary alert

    # Heuristic catch for unclassified large objects
    high_confidence: float = 0.7
    large_height_fraction: float = 0.3

    # Lower region scanned by the fallback detector
    fallback_lower_fraction: float = 0.5


@dataclass
class DepthConfig:
    """Configuration for depth decoding."""

    enabled: bool = True
    grid_size: int = 256
    max_depth: float = 10.0
    model_name: str = "MiDaS_small"


@dataclass
class GuidanceConfig:
    """Configuration for the guidance decision engine."""

    door_class: int = 0
    hinged_class: int = 1
    knob_class: int = 2
    lever_class: int = 3

    proximity_distance: float = 0.5
    caution_distance: float = 3.0

    door_state_enabled: bool = False


@dataclass
class PipelineConfig:
    """Configuration for model wiring in the frame pipeline."""

    door_model_path: str = "models/doordetectionyolo11_float32.pt"
    obstacle_model_path: Optional[str] = None
    door_state_model_path: Optional[str] = None

    device: str = "cpu"
    input_layout: str = "nchw"

    obstacle_detection_enabled: bool = True
    fallback_message: str = "Detection failed. Please try again."


def load_obstacle_region_config() -> ObstacleRegionConfig:
    """
    Load lower-region detector configuration from Config with fallback defaults.

    Returns:
        ObstacleRegionConfig with values from Config or defaults
    """
    from doorguide.utils.config import Config

    return ObstacleRegionConfig(
        lower_fraction=getattr(Config, "REGION_LOWER_FRACTION", 0.3),
        proportion_threshold=getattr(Config, "REGION_PROPORTION_THRESHOLD", 0.15),
        threshold_offset=getattr(Config, "REGION_THRESHOLD_OFFSET", 20),
        depth_proportion_threshold=getattr(Config, "REGION_DEPTH_PROPORTION_THRESHOLD", 0.1),
        depth_cutoff=getattr(Config, "REGION_DEPTH_CUTOFF", 1.5),
        max_span_fraction=getattr(Config, "REGION_MAX_SPAN_FRACTION", 0.9),
    )


def load_obstacle_ranking_config() -> ObstacleRankingConfig:
    """
    Load obstacle ranking configuration from Config with fallback defaults.

    Returns:
        ObstacleRankingConfig with values from Config or defaults
    """
    from doorguide.utils.config import Config

    return ObstacleRankingConfig(
        obstacle_classes=frozenset(getattr(Config, "OBSTACLE_CLASS_SET", frozenset())),
        class_labels=dict(getattr(Config, "OBSTACLE_CLASS_LABELS", {})),
        proximity_distance=getattr(Config, "OBSTACLE_PROXIMITY_DISTANCE", 0.5),
        caution_distance=getattr(Config, "OBSTACLE_CAUTION_DISTANCE", 3.0),
        high_confidence=getattr(Config, "OBSTACLE_HIGH_CONFIDENCE", 0.7),
        large_height_fraction=getattr(Config, "OBSTACLE_LARGE_HEIGHT_FRACTION", 0.3),
        fallback_lower_fraction=getattr(Config, "REGION_DEPTH_LOWER_FRACTION", 0.5),
    )


def load_depth_config() -> DepthConfig:
    """
    Load depth configuration from Config with fallback defaults.

    Returns:
        DepthConfig with values from Config or defaults
    """
    from doorguide.utils.config import Config

    return DepthConfig(
        enabled=getattr(Config, "DEPTH_ENABLED", True),
        grid_size=getattr(Config, "DEPTH_GRID_SIZE", 256),
        max_depth=getattr(Config, "DEPTH_MAX_METERS", 10.0),
        model_name=getattr(Config, "DEPTH_MODEL_NAME", "MiDaS_small"),
    )


def load_guidance_config() -> GuidanceConfig:
    """
    Load guidance configuration from Config with fallback defaults.

    Returns:
        GuidanceConfig with values from Config or defaults
    """
    from doorguide.utils.config import Config

    return GuidanceConfig(
        door_class=getattr(Config, "DOOR_CLASS", 0),
        hinged_class=getattr(Config, "HINGED_CLASS", 1),
        knob_class=getattr(Config, "KNOB_CLASS", 2),
        lever_class=getattr(Config, "LEVER_CLASS", 3),
        proximity_distance=getattr(Config, "OBSTACLE_PROXIMITY_DISTANCE", 0.5),
        caution_distance=getattr(Config, "OBSTACLE_CAUTION_DISTANCE", 3.0),
        door_state_enabled=getattr(Config, "DOOR_STATE_ENABLED", False),
    )


def load_pipeline_config() -> PipelineConfig:
    """
    Load pipeline wiring configuration from Config with fallback defaults.

    Returns:
        PipelineConfig with values from Config or defaults
    """
    from doorguide.utils.config import Config

    return PipelineConfig(
        door_model_path=getattr(Config, "DOOR_MODEL_PATH", "models/doordetectionyolo11_float32.pt"),
        obstacle_model_path=getattr(Config, "OBSTACLE_MODEL_PATH", None),
        door_state_model_path=getattr(Config, "DOOR_STATE_MODEL_PATH", None),
        device=getattr(Config, "MODEL_DEVICE", "cpu"),
        input_layout=getattr(Config, "MODEL_INPUT_LAYOUT", "nchw"),
        obstacle_detection_enabled=getattr(Config, "OBSTACLE_DETECTION_ENABLED", True),
        fallback_message=getattr(Config, "FALLBACK_MESSAGE", "Detection failed. Please try again."),
    )
