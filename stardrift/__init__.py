"""Stardrift.

Ambient starfield backdrop:
- **Field simulation** under `stardrift/field/` (particles, pointer projection, orbits, clock)
- **Instruments** under `stardrift/instrument/` (history, profiler, dashboard)

Keep this module intentionally light so importing `stardrift.field.*` does not
pull in pyplot or open a window.
"""

from __future__ import annotations

__all__ = [
    "Backdrop",
    "BackdropConfig",
    "ParticleField",
    "run_backdrop",
]


def __getattr__(name: str):  # pragma: no cover
    if name == "Backdrop":
        from .field.simulator import Backdrop as _Backdrop

        return _Backdrop
    if name == "BackdropConfig":
        from .field.config import BackdropConfig as _BackdropConfig

        return _BackdropConfig
    if name == "ParticleField":
        from .field.particles import ParticleField as _ParticleField

        return _ParticleField
    if name == "run_backdrop":
        from .field.simulator import run_backdrop as _run_backdrop

        return _run_backdrop
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
