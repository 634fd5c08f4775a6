"""Device selection for the field tensors.

The starfield step is a handful of elementwise tensor ops, so it runs fine on
CPU. Accelerators are picked up when torch reports them.
"""

from __future__ import annotations

import platform

import torch

__all__ = [
    "cuda_supported",
    "mps_supported",
    "get_device",
    "resolve_device",
]


def cuda_supported() -> bool:
    try:
        return bool(torch.cuda.is_available())
    except Exception:
        return False


def mps_supported() -> bool:
    """Whether the current runtime can place tensors on Apple's MPS backend."""
    if platform.system() != "Darwin":
        return False

    try:
        return bool(torch.backends.mps.is_available())
    except Exception:
        return False


def get_device() -> str:
    """Best available device for the field buffers."""
    if cuda_supported():
        return "cuda"
    if mps_supported():
        return "mps"

    return "cpu"


def resolve_device(device: str | None) -> str:
    """Map ``None``/``"auto"`` to a concrete device string."""
    if device is None or str(device).lower() == "auto":
        return get_device()
    return str(device)
