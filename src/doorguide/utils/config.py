"""
Centralized configuration for the DoorGuide frame-interpretation pipeline.

This module provides all configuration constants for:
- Detector output decoding (door model and general-purpose obstacle model)
- Non-maximum suppression
- Depth decoding (MiDaS-style inverse depth)
- Lower-region obstacle detection
- Depth-fused obstacle ranking
- Guidance decision thresholds
- Logging and model locations

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation. Components read
them through ``getattr(Config, NAME, default)`` so individual values can be
patched at runtime.

Usage:
    from doorguide.utils.config import Config

    proximity = Config.OBSTACLE_PROXIMITY_DISTANCE
    if Config.DEPTH_ENABLED:
        # Run the depth model
"""


class Config:
    """System configuration constants for DoorGuide."""

    # ==========================================================================
    # MODELS: Files and canvas sizes
    # ==========================================================================

    DOOR_MODEL_PATH = "models/doordetectionyolo11_float32.pt"
    OBSTACLE_MODEL_PATH = "models/yolo11n.pt"
    DEPTH_MODEL_NAME = "MiDaS_small"        # torch.hub entry of intel-isl/MiDaS
    DOOR_STATE_MODEL_PATH = None            # Optional TorchScript classifier

    MODEL_DEVICE = "cpu"                    # Preferred device: cuda/mps/cpu
    MODEL_INPUT_LAYOUT = "nchw"             # "nchw" (PyTorch) or "nhwc" (TFLite export)

    # ==========================================================================
    # DOOR DETECTOR: Decoding
    # ==========================================================================

    DOOR_PROFILE = "door"                   # Options: "door", "door_legacy"
    DOOR_INPUT_SIZE = 640
    DOOR_CONFIDENCE = 0.25                  # Low threshold to capture more doors
    DOOR_IOU_THRESHOLD = 0.4

    # Class indices of the door model (from its data.yaml)
    DOOR_CLASS = 0
    HINGED_CLASS = 1
    KNOB_CLASS = 2
    LEVER_CLASS = 3

    # ==========================================================================
    # OBSTACLE DETECTOR: General purpose model (COCO)
    # ==========================================================================

    OBSTACLE_DETECTION_ENABLED = True
    OBSTACLE_PROFILE = "coco"
    OBSTACLE_INPUT_SIZE = 640
    OBSTACLE_CONFIDENCE = 0.35
    OBSTACLE_IOU_THRESHOLD = 0.45

    # COCO indices treated as physical obstacles
    OBSTACLE_CLASS_SET = frozenset({
        0,      # person
        1,      # bicycle
        13,     # bench
        24,     # backpack
        28,     # suitcase
        56,     # chair
        57,     # couch
        58,     # potted plant
        59,     # bed
        60,     # dining table
        61,     # toilet
        62,     # tv
        72,     # refrigerator
    })

    OBSTACLE_CLASS_LABELS = {
        0: "person",
        1: "bicycle",
        13: "bench",
        24: "backpack",
        28: "suitcase",
        56: "chair",
        57: "couch",
        58: "potted plant",
        59: "bed",
        60: "table",
        61: "toilet",
        62: "television",
        72: "refrigerator",
    }

    # Large unclassified objects (tables, counters) still count as obstacles
    OBSTACLE_HIGH_CONFIDENCE = 0.7
    OBSTACLE_LARGE_HEIGHT_FRACTION = 0.3

    # ==========================================================================
    # DISTANCES: Alert cutoffs in meters
    # ==========================================================================

    OBSTACLE_PROXIMITY_DISTANCE = 0.5       # Below this = stop immediately
    OBSTACLE_CAUTION_DISTANCE = 3.0         # Below this = cautionary message

    # ==========================================================================
    # DEPTH ESTIMATION
    # ==========================================================================

    DEPTH_ENABLED = True
    DEPTH_GRID_SIZE = 256                   # MiDaS small output grid (256x256)
    DEPTH_MAX_METERS = 10.0                 # Horizon of the squashing transform

    # ==========================================================================
    # LOWER-REGION OBSTACLE DETECTION
    # ==========================================================================

    REGION_LOWER_FRACTION = 0.3             # Bottom 30% of the frame
    REGION_PROPORTION_THRESHOLD = 0.15      # Largest dark region share of the scan
    REGION_THRESHOLD_OFFSET = 20            # Binarization threshold = mean - offset

    # Depth-gated variant (used by the ranker fallback)
    REGION_DEPTH_LOWER_FRACTION = 0.5
    REGION_DEPTH_PROPORTION_THRESHOLD = 0.1
    REGION_DEPTH_CUTOFF = 1.5               # Mean region depth must be below this
    REGION_MAX_SPAN_FRACTION = 0.9          # Reject regions spanning the whole scan

    # ==========================================================================
    # GUIDANCE
    # ==========================================================================

    DOOR_STATE_ENABLED = False              # Query the open/closed classifier on hinges
    DOOR_STATE_INPUT_SIZE = 224

    FALLBACK_MESSAGE = "Detection failed. Please try again."

    # Spoken zone phrases (zone ID -> phrase)
    GUIDANCE_ZONE_PHRASES = {
        "left": "on the left",
        "center": "ahead",
        "right": "on the right",
    }

    # ==========================================================================
    # LOGGING
    # ==========================================================================

    LOG_LEVEL = "INFO"
    LOG_SESSION_DIR = None                  # When set, per-concern debug files are written
