from __future__ import annotations

import math
from dataclasses import dataclass, replace

import torch

from .config import CameraConfig

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class CameraState:
    """Perspective camera looking from ``position`` towards ``target``."""

    position: Vec3 = (0.0, 0.0, 60.0)
    target: Vec3 = (0.0, 0.0, 0.0)
    up: Vec3 = (0.0, 1.0, 0.0)
    fov_deg: float = 60.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 2000.0

    def basis(self) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """Return orthonormal ``(right, up, forward)`` vectors in world space."""
        pos = torch.tensor(self.position, dtype=torch.float64)
        target = torch.tensor(self.target, dtype=torch.float64)
        up = torch.tensor(self.up, dtype=torch.float64)

        forward = target - pos
        norm = torch.linalg.norm(forward)
        if not bool(norm > 0.0):
            # Target on top of the camera: keep the default -z view direction.
            forward = torch.tensor([0.0, 0.0, -1.0], dtype=torch.float64)
        else:
            forward = forward / norm

        right = torch.linalg.cross(forward, up)
        if not bool(torch.linalg.norm(right) > 1e-12):
            # Looking straight along `up`; nudge the reference axis.
            alt = torch.tensor([0.0, 0.0, 1.0], dtype=torch.float64)
            if abs(float(forward[2])) > 0.9:
                alt = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
            right = torch.linalg.cross(forward, alt)
        right = right / torch.linalg.norm(right)
        true_up = torch.linalg.cross(right, forward)
        return right, true_up, forward

    def project(self, points: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
        """World points ``(N, 3)`` -> NDC ``(N, 2)`` and view depth ``(N,)``.

        Depth is the distance along the view direction; points with depth
        outside ``(near, far)`` are not visible.
        """
        right, up, forward = self.basis()
        pts = torch.as_tensor(points).to(torch.float64).reshape(-1, 3)
        rel = pts - torch.tensor(self.position, dtype=torch.float64)
        depth = rel @ forward
        tan_half = math.tan(math.radians(float(self.fov_deg)) * 0.5)
        safe = torch.where(depth.abs() > 1e-12, depth, torch.full_like(depth, 1e-12))
        ndc = torch.stack(
            [
                (rel @ right) / (safe * tan_half * float(self.aspect)),
                (rel @ up) / (safe * tan_half),
            ],
            dim=1,
        )
        return ndc, depth

    def with_aspect(self, aspect: float) -> "CameraState":
        return replace(self, aspect=float(aspect))


class CameraRig:
    """Slow dolly along +z, always looking at the origin."""

    def __init__(self, config: CameraConfig | None = None, *, width: int = 1, height: int = 1) -> None:
        self.cfg = config or CameraConfig()
        self.aspect = 1.0
        self.state = self.at(0.0)
        self.resize(width, height)

    def resize(self, width: float, height: float) -> bool:
        """Update the aspect ratio. Non-positive sizes are ignored."""
        w = float(width)
        h = float(height)
        if not (math.isfinite(w) and math.isfinite(h)) or w <= 0.0 or h <= 0.0:
            return False
        self.aspect = w / h
        self.state = self.state.with_aspect(self.aspect)
        return True

    def at(self, now_ms: float) -> CameraState:
        """Camera state for a host timestamp in milliseconds."""
        cfg = self.cfg
        z = float(cfg.distance) + math.sin(float(now_ms) * float(cfg.dolly_rate)) * float(cfg.dolly_amplitude)
        return CameraState(
            position=(0.0, 0.0, z),
            target=(0.0, 0.0, 0.0),
            fov_deg=float(cfg.fov_deg),
            aspect=self.aspect,
            near=float(cfg.near),
            far=float(cfg.far),
        )

    def update(self, now_ms: float) -> CameraState:
        if math.isfinite(float(now_ms)):
            self.state = self.at(now_ms)
        return self.state
