"""
Device selection helpers for PyTorch inference.

Supported backends:
- CUDA (NVIDIA GPUs)
- MPS (Apple Silicon)
- CPU (fallback)

Usage:
    device = get_preferred_device("cuda")  # Falls back to MPS or CPU
    empty_mps_cache()
"""

from __future__ import annotations

from typing import Union

import torch


def get_preferred_device(preferred: Union[str, torch.device] = "cpu") -> torch.device:
    """Return the preferred torch device when available, else the best remaining one.

    Asking for "cpu" explicitly always yields the CPU.
    """
    if isinstance(preferred, torch.device):
        preferred_lower = preferred.type
    else:
        preferred_lower = str(preferred).lower()

    if preferred_lower == "cpu":
        return torch.device("cpu")

    # Priority: CUDA > MPS > CPU
    if preferred_lower == "cuda" and torch.cuda.is_available():
        return torch.device("cuda")
    elif preferred_lower == "mps" and torch.backends.mps.is_available():
        return torch.device("mps")
    elif torch.cuda.is_available():
        return torch.device("cuda")
    elif torch.backends.mps.is_available():
        return torch.device("mps")

    return torch.device("cpu")


def empty_mps_cache() -> None:
    """Free cached MPS memory when backend is active."""
    if torch.backends.mps.is_available():
        torch.mps.empty_cache()


__all__ = ["empty_mps_cache", "get_preferred_device"]
