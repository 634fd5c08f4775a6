from __future__ import annotations

import math
import os
import dataclasses
from dataclasses import dataclass
from pathlib import Path

import torch


def _require_finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return value


def _require_shell(name: str, shell: tuple[float, float]) -> tuple[float, float]:
    r_min, r_max = (_require_finite(name, v) for v in shell)
    if r_min < 0.0 or r_max < r_min:
        raise ValueError(f"{name} must satisfy 0 <= r_min <= r_max, got {shell!r}")
    return (r_min, r_max)


@dataclass(frozen=True)
class RepulsionField:
    """Force profile of the pointer repulsion.

    [FORMULA] s = strength * (1 - dist/radius) ** (1 + 3 * falloff)
    [NOTES] falloff -> 1 sharpens the near-field push, falloff -> 0 flattens it.
    """

    radius: float = 25.0
    strength: float = 0.07
    falloff: float = 0.8

    def __post_init__(self) -> None:
        radius = _require_finite("radius", self.radius)
        strength = _require_finite("strength", self.strength)
        falloff = _require_finite("falloff", self.falloff)
        if radius <= 0.0:
            raise ValueError(f"radius must be > 0, got {radius}")
        if strength < 0.0:
            raise ValueError(f"strength must be >= 0, got {strength}")
        if not 0.0 <= falloff <= 1.0:
            raise ValueError(f"falloff must be in [0, 1], got {falloff}")

    @property
    def exponent(self) -> float:
        return 1.0 + 3.0 * float(self.falloff)


@dataclass
class FieldConfig:
    """Configuration for the star particle field."""

    num_particles: int = 20000

    # Spawn shell for the initial field and the tighter shell used on re-seed.
    spawn_shell: tuple[float, float] = (50.0, 500.0)
    reseed_shell: tuple[float, float] = (100.0, 500.0)
    outer_bound: float = 600.0

    # Drift velocity components are (u - 0.5) * drift_scale.
    drift_scale: float = 0.002
    # [CHOICE] drift is applied per frame, not per second
    # [NOTES] Set to e.g. 60.0 to scale drift by dt * fps instead.
    drift_reference_fps: float | None = None

    repulsion: RepulsionField = dataclasses.field(default_factory=RepulsionField)
    depth_damping: float = 0.35
    jitter_range: tuple[float, float] = (15.0, 25.0)
    depth_nudge: float = 2.0
    eps: float = 1e-4

    # Star colour in HSL: hue/lightness centre with a symmetric spread.
    hue: float = 0.58
    hue_spread: float = 0.1
    saturation: float = 0.6
    lightness: float = 0.6
    lightness_spread: float = 0.3

    seed: int = 0
    device: str = "cpu"
    dtype: torch.dtype = dataclasses.field(default_factory=lambda: torch.float32)

    def __post_init__(self) -> None:
        if int(self.num_particles) <= 0:
            raise ValueError(f"num_particles must be > 0, got {self.num_particles}")
        self.num_particles = int(self.num_particles)
        self.spawn_shell = _require_shell("spawn_shell", self.spawn_shell)
        self.reseed_shell = _require_shell("reseed_shell", self.reseed_shell)
        bound = _require_finite("outer_bound", self.outer_bound)
        if bound < self.reseed_shell[1]:
            # Re-seeded stars must land inside the bound or they would wrap forever.
            raise ValueError(
                f"outer_bound ({bound}) must be >= reseed_shell r_max ({self.reseed_shell[1]})"
            )
        self.outer_bound = bound
        if _require_finite("drift_scale", self.drift_scale) < 0.0:
            raise ValueError(f"drift_scale must be >= 0, got {self.drift_scale}")
        if self.drift_reference_fps is not None and not (
            _require_finite("drift_reference_fps", self.drift_reference_fps) > 0.0
        ):
            raise ValueError(f"drift_reference_fps must be > 0, got {self.drift_reference_fps}")
        if _require_finite("depth_damping", self.depth_damping) < 0.0:
            raise ValueError(f"depth_damping must be >= 0, got {self.depth_damping}")
        lo, hi = (_require_finite("jitter_range", v) for v in self.jitter_range)
        if lo < 0.0 or hi < lo:
            raise ValueError(f"jitter_range must satisfy 0 <= lo <= hi, got {self.jitter_range}")
        self.jitter_range = (lo, hi)
        if _require_finite("eps", self.eps) <= 0.0:
            raise ValueError(f"eps must be > 0, got {self.eps}")


@dataclass
class OrbitConfig:
    """Orbit time and group spin rates (rad per simulated second)."""

    base_rate: float = 0.25
    group_rotation_rate: float = 0.05

    def __post_init__(self) -> None:
        _require_finite("base_rate", self.base_rate)
        _require_finite("group_rotation_rate", self.group_rotation_rate)


@dataclass
class ClockConfig:
    """Frame delta clamp and FPS smoothing."""

    max_dt: float = 0.033
    smoothing: float = 0.9
    initial_rate: float = 60.0

    def __post_init__(self) -> None:
        if not _require_finite("max_dt", self.max_dt) > 0.0:
            raise ValueError(f"max_dt must be > 0, got {self.max_dt}")
        if not 0.0 <= _require_finite("smoothing", self.smoothing) < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {self.smoothing}")
        if not _require_finite("initial_rate", self.initial_rate) > 0.0:
            raise ValueError(f"initial_rate must be > 0, got {self.initial_rate}")


@dataclass
class CameraConfig:
    """Perspective camera and its slow dolly along +z."""

    fov_deg: float = 60.0
    near: float = 0.1
    far: float = 2000.0
    distance: float = 60.0
    dolly_amplitude: float = 5.0
    dolly_rate: float = 0.00025  # rad per millisecond

    def __post_init__(self) -> None:
        fov = _require_finite("fov_deg", self.fov_deg)
        if not 0.0 < fov < 180.0:
            raise ValueError(f"fov_deg must be in (0, 180), got {fov}")
        if not 0.0 < _require_finite("near", self.near) < _require_finite("far", self.far):
            raise ValueError(f"need 0 < near < far, got near={self.near} far={self.far}")
        _require_finite("distance", self.distance)
        _require_finite("dolly_amplitude", self.dolly_amplitude)
        _require_finite("dolly_rate", self.dolly_rate)


@dataclass
class BackdropConfig:
    """Configuration for the whole backdrop run."""

    field: FieldConfig = dataclasses.field(default_factory=FieldConfig)
    orbit: OrbitConfig = dataclasses.field(default_factory=OrbitConfig)
    clock: ClockConfig = dataclasses.field(default_factory=ClockConfig)
    camera: CameraConfig = dataclasses.field(default_factory=CameraConfig)

    # Render surface in pixels (top-left origin).
    width: int = 1280
    height: int = 720

    # Run loop
    max_frames: int | None = None
    target_fps: float | None = 60.0  # None = run as fast as possible

    # Dashboard
    dashboard_enabled: bool = True
    dashboard_fps: int = 30
    dashboard_max_points: int = 4000

    # Optional: record the live dashboard to a video file (mp4/gif).
    dashboard_video_path: Path | None = None

    # Profiling
    profile_enabled: bool = False
    profile_output_dir: Path = dataclasses.field(default_factory=lambda: Path("artifacts/profiles"))

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(f"surface size must be positive, got {self.width}x{self.height}")
        if self.max_frames is not None and int(self.max_frames) < 0:
            raise ValueError(f"max_frames must be >= 0, got {self.max_frames}")
        if self.target_fps is not None and not _require_finite("target_fps", self.target_fps) > 0.0:
            raise ValueError(f"target_fps must be > 0, got {self.target_fps}")
        if int(self.dashboard_fps) <= 0:
            raise ValueError(f"dashboard_fps must be > 0, got {self.dashboard_fps}")

    @staticmethod
    def dashboard_fps_from_env(default: int = 30) -> int:
        fps_s = os.environ.get("STARDRIFT_DASHBOARD_FPS", str(default))
        try:
            fps = int(fps_s)
        except ValueError:
            return default
        return fps if fps > 0 else default
