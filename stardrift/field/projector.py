"""Pointer projection: client pixels -> NDC -> world point on a reference plane.

The projector itself is stateless. `PointerState` owns the last valid world
position and keeps it whenever an input cannot be projected (non-finite
coordinates, degenerate surface, ray parallel to or pointing away from the
plane).
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

import torch

from .camera import CameraState

__all__ = [
    "SurfaceRect",
    "Plane",
    "Z_PLANE",
    "device_to_ndc",
    "PointerProjector",
    "PointerState",
]


@dataclass(frozen=True)
class SurfaceRect:
    """Bounding rectangle of the render surface in client pixels."""

    left: float = 0.0
    top: float = 0.0
    width: float = 1.0
    height: float = 1.0


@dataclass(frozen=True)
class Plane:
    """Plane of points ``p`` with ``normal · p + constant = 0``."""

    normal: tuple[float, float, float] = (0.0, 0.0, 1.0)
    constant: float = 0.0


Z_PLANE = Plane()


def device_to_ndc(client_x: float, client_y: float, rect: SurfaceRect) -> Optional[tuple[float, float]]:
    """Map client pixels to normalized device coordinates (+y up).

    Returns ``None`` for non-finite input or an empty rectangle.
    """
    values = (client_x, client_y, rect.left, rect.top, rect.width, rect.height)
    if not all(math.isfinite(float(v)) for v in values):
        return None
    if rect.width == 0 or rect.height == 0:
        return None
    x = ((float(client_x) - rect.left) / rect.width) * 2.0 - 1.0
    y = -((float(client_y) - rect.top) / rect.height) * 2.0 + 1.0
    return (x, y)


class PointerProjector:
    """Cast a camera ray through an NDC point and intersect it with a plane."""

    def __init__(self, eps: float = 1e-9) -> None:
        self.eps = float(eps)

    def ray(self, ndc_x: float, ndc_y: float, camera: CameraState) -> tuple[torch.Tensor, torch.Tensor]:
        """Return ``(origin, direction)`` of the pick ray, direction normalized."""
        right, up, forward = camera.basis()
        tan_half = math.tan(math.radians(float(camera.fov_deg)) * 0.5)
        direction = (
            right * (float(ndc_x) * tan_half * float(camera.aspect))
            + up * (float(ndc_y) * tan_half)
            + forward
        )
        direction = direction / torch.linalg.norm(direction)
        origin = torch.tensor(camera.position, dtype=torch.float64)
        return origin, direction

    def project(
        self,
        ndc_x: float,
        ndc_y: float,
        camera: CameraState,
        plane: Plane = Z_PLANE,
    ) -> Optional[torch.Tensor]:
        """World-space intersection as a float64 ``(3,)`` tensor, or ``None``."""
        if not (math.isfinite(float(ndc_x)) and math.isfinite(float(ndc_y))):
            return None
        origin, direction = self.ray(ndc_x, ndc_y, camera)
        normal = torch.tensor(plane.normal, dtype=torch.float64)

        denom = float(torch.dot(normal, direction))
        if abs(denom) <= self.eps:
            return None
        t = -(float(torch.dot(normal, origin)) + float(plane.constant)) / denom
        if not math.isfinite(t) or t < 0.0:
            # Plane is behind the camera.
            return None
        point = origin + direction * t
        if not bool(torch.isfinite(point).all()):
            return None
        return point


class PointerState:
    """Last known pointer world position; last value wins, sticky between events.

    Input callbacks may run on a GUI thread, so the value is swapped under a
    lock and read once per frame through `snapshot`.
    """

    def __init__(
        self,
        projector: Optional[PointerProjector] = None,
        plane: Plane = Z_PLANE,
        initial: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        self.projector = projector or PointerProjector()
        self.plane = plane
        self._lock = threading.Lock()
        self._world = torch.tensor(list(initial), dtype=torch.float64)
        self.ndc: tuple[float, float] = (0.0, 0.0)
        self.updates = 0
        self.rejected = 0

    @property
    def world_position(self) -> torch.Tensor:
        return self.snapshot()

    def snapshot(self) -> torch.Tensor:
        with self._lock:
            return self._world.clone()

    def update_ndc(self, ndc_x: float, ndc_y: float, camera: CameraState) -> bool:
        point = self.projector.project(ndc_x, ndc_y, camera, self.plane)
        with self._lock:
            if point is None:
                self.rejected += 1
                return False
            self._world = point
            self.ndc = (float(ndc_x), float(ndc_y))
            self.updates += 1
        return True

    def update(self, client_x: float, client_y: float, rect: SurfaceRect, camera: CameraState) -> bool:
        """Project a pointer move given in client pixels. Returns False if ignored."""
        ndc = device_to_ndc(client_x, client_y, rect)
        if ndc is None:
            with self._lock:
                self.rejected += 1
            return False
        return self.update_ndc(ndc[0], ndc[1], camera)

    def update_touches(
        self,
        touches: Sequence[tuple[float, float]],
        rect: SurfaceRect,
        camera: CameraState,
    ) -> bool:
        """Use the first active touch point; an empty list is ignored."""
        if not touches:
            return False
        client_x, client_y = touches[0]
        return self.update(client_x, client_y, rect, camera)
