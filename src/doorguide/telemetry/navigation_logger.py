"""
Dedicated logger for frame interpretation debugging.

This module provides a singleton logger that separates pipeline debugging logs
into dedicated files for easier analysis and troubleshooting.

Features:
- Singleton pattern (one instance per session)
- Separate log files for decoding, depth, obstacle detection and decisions
- DEBUG level logging to files when a session directory is configured
- WARNING level console output for critical messages

Log Files:
- decision_engine.log: Guidance rule evaluation and chosen outcome
- vision.log: Tensor decoding and suppression counts
- obstacle.log: Region statistics and obstacle ranking
- depth.log: Depth decoding ranges and failures

Usage:
    from doorguide.telemetry.navigation_logger import get_navigation_logger

    nav_logger = get_navigation_logger(session_dir=Path("logs/session_2026-01-15_10-30-00"))
    nav_logger.decision.debug("Evaluating rules...")
    nav_logger.obstacle.info("Largest region proportion 0.21")
"""

import logging
from pathlib import Path
from typing import Optional

CONCERNS = {
    "decision": "decision_engine.log",
    "vision": "vision.log",
    "obstacle": "obstacle.log",
    "depth": "depth.log",
}


class NavigationLogger:
    """Singleton logger for frame interpretation debugging."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Optional[Path] = None):
        if self._initialized:
            return

        self.log_dir = Path(session_dir) if session_dir is not None else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        for name, filename in CONCERNS.items():
            self._setup_logger(name, filename)

        self._initialized = True

    def _setup_logger(self, name: str, filename: str):
        """Setup individual logger with file handler."""
        logger = logging.getLogger(f"nav.{name}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        # Clear existing handlers
        logger.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        )

        if self.log_dir is not None:
            fh = logging.FileHandler(self.log_dir / filename, mode='w')
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

        # Console handler (critical messages only)
        ch = logging.StreamHandler()
        ch.setLevel(logging.WARNING)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        setattr(self, name, logger)

    def close(self):
        """Close all handlers."""
        for name in CONCERNS:
            logger = getattr(self, name, None)
            if logger:
                for handler in logger.handlers[:]:
                    handler.close()
                    logger.removeHandler(handler)


# Global instance
_nav_logger = None


def get_navigation_logger(session_dir: Optional[Path] = None) -> NavigationLogger:
    """Get or create navigation logger instance."""
    global _nav_logger
    if _nav_logger is None:
        _nav_logger = NavigationLogger(session_dir=session_dir)
    return _nav_logger


def init_navigation_logger(session_dir: Optional[Path]) -> NavigationLogger:
    """Recreate the navigation logger for a new session directory."""
    global _nav_logger
    if _nav_logger is not None:
        _nav_logger.close()
    NavigationLogger._instance = None
    NavigationLogger._initialized = False
    _nav_logger = NavigationLogger(session_dir=session_dir)
    return _nav_logger
