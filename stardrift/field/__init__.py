"""Field APIs.

This package contains:
- **Core simulation**: `ParticleField`, `sample_shell`, `PointerProjector`,
  `OrbitDriver`, `FrameClock`
- **Application**: `Backdrop` (lifecycle + run loop) and `run_backdrop`
- **Configuration** dataclasses in `config`
"""

from __future__ import annotations

import importlib

__all__ = [
    "BackdropConfig",
    "FieldConfig",
    "RepulsionField",
    "ParticleField",
    "sample_shell",
    "PointerProjector",
    "PointerState",
    "SurfaceRect",
    "device_to_ndc",
    "OrbitDriver",
    "FrameClock",
    "CameraRig",
    "Backdrop",
    "run_backdrop",
]

_LAZY = {
    "BackdropConfig": ".config",
    "FieldConfig": ".config",
    "RepulsionField": ".config",
    "ParticleField": ".particles",
    "sample_shell": ".sampler",
    "PointerProjector": ".projector",
    "PointerState": ".projector",
    "SurfaceRect": ".projector",
    "device_to_ndc": ".projector",
    "OrbitDriver": ".orbits",
    "FrameClock": ".clock",
    "CameraRig": ".camera",
    "Backdrop": ".simulator",
    "run_backdrop": ".simulator",
}


def __getattr__(name: str):  # pragma: no cover
    # Keep imports lazy (tensordict/matplotlib are only needed by the app layer).
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(importlib.import_module(module_name, __name__), name)
