"""Closed-form planet orbits.

Body positions are evaluated from the accumulated orbit time alone, so a saved
`t_orbit` restores them exactly. Spin angles are integrated from `dt`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import OrbitConfig

__all__ = [
    "OrbitAxis",
    "OrbitBody",
    "OrbitTransform",
    "OrbitDriver",
    "default_bodies",
]

_WAVEFORMS = {"cos": math.cos, "sin": math.sin}


@dataclass(frozen=True)
class OrbitAxis:
    """One coordinate of an orbit: ``amplitude * waveform(frequency * t + phase)``."""

    amplitude: float
    frequency: float = 1.0
    waveform: str = "cos"
    phase: float = 0.0

    def __post_init__(self) -> None:
        if self.waveform not in _WAVEFORMS:
            raise ValueError(f"waveform must be one of {sorted(_WAVEFORMS)}, got {self.waveform!r}")

    def __call__(self, t: float) -> float:
        return float(self.amplitude) * _WAVEFORMS[self.waveform](float(self.frequency) * t + float(self.phase))


@dataclass(frozen=True)
class OrbitBody:
    name: str
    x: OrbitAxis
    y: OrbitAxis
    z: OrbitAxis
    rotation_rate: float = 0.0
    radius: float = 1.0
    color: str = "#ffffff"

    def position_at(self, t_orbit: float) -> tuple[float, float, float]:
        return (self.x(t_orbit), self.y(t_orbit), self.z(t_orbit))


@dataclass
class OrbitTransform:
    """Transform of one body for the renderer."""

    name: str
    position: tuple[float, float, float]
    world_position: tuple[float, float, float]
    rotation_y: float
    radius: float = 1.0
    color: str = "#ffffff"


def default_bodies() -> List[OrbitBody]:
    """The blue and the warm planet."""
    return [
        OrbitBody(
            name="planet1",
            x=OrbitAxis(22.0, 1.0, "cos"),
            y=OrbitAxis(10.0, 1.2, "sin"),
            z=OrbitAxis(-8.0, 1.0, "sin"),
            rotation_rate=0.25,
            radius=5.0,
            color="#6aa2ff",
        ),
        OrbitBody(
            name="planet2",
            x=OrbitAxis(-30.0, 0.7, "cos"),
            y=OrbitAxis(14.0, 0.9, "sin"),
            z=OrbitAxis(12.0, 0.5, "cos"),
            rotation_rate=0.35,
            radius=3.5,
            color="#ffa15c",
        ),
    ]


def _rotate_y(p: Sequence[float], angle: float) -> tuple[float, float, float]:
    c = math.cos(angle)
    s = math.sin(angle)
    x, y, z = p
    return (c * x + s * z, y, -s * x + c * z)


class OrbitDriver:
    """Advance orbit time, body spins and the group spin."""

    def __init__(self, config: Optional[OrbitConfig] = None, bodies: Optional[Sequence[OrbitBody]] = None) -> None:
        self.cfg = config or OrbitConfig()
        self.bodies: List[OrbitBody] = list(bodies) if bodies is not None else default_bodies()
        names = [b.name for b in self.bodies]
        if len(set(names)) != len(names):
            raise ValueError(f"orbit body names must be unique, got {names}")
        self.t_orbit = 0.0
        self.rotations: Dict[str, float] = {b.name: 0.0 for b in self.bodies}
        self.group_rotation = 0.0

    def advance(self, dt: float) -> List[OrbitTransform]:
        """Advance by `dt` seconds. Non-finite or negative `dt` is ignored."""
        dt = float(dt)
        if math.isfinite(dt) and dt >= 0.0:
            self.t_orbit += dt * float(self.cfg.base_rate)
            for body in self.bodies:
                self.rotations[body.name] += dt * float(body.rotation_rate)
            self.group_rotation += dt * float(self.cfg.group_rotation_rate)
        return self.transforms()

    def transforms_at(self, t_orbit: float) -> List[OrbitTransform]:
        """Transforms for an arbitrary orbit time with the current spin state."""
        out: List[OrbitTransform] = []
        for body in self.bodies:
            local = body.position_at(float(t_orbit))
            out.append(
                OrbitTransform(
                    name=body.name,
                    position=local,
                    world_position=_rotate_y(local, self.group_rotation),
                    rotation_y=self.rotations[body.name],
                    radius=body.radius,
                    color=body.color,
                )
            )
        return out

    def transforms(self) -> List[OrbitTransform]:
        return self.transforms_at(self.t_orbit)

    def state_dict(self) -> Dict[str, Any]:
        return {
            "t_orbit": self.t_orbit,
            "rotations": dict(self.rotations),
            "group_rotation": self.group_rotation,
        }

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        t_orbit = float(state["t_orbit"])
        if not math.isfinite(t_orbit):
            raise ValueError(f"t_orbit must be finite, got {t_orbit}")
        self.t_orbit = t_orbit
        rotations = state.get("rotations", {})
        for name in self.rotations:
            self.rotations[name] = float(rotations.get(name, 0.0))
        self.group_rotation = float(state.get("group_rotation", 0.0))
