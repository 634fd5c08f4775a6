from __future__ import annotations

from typing import Any

import numpy as np
import torch

from stardrift.field.camera import CameraState


def _to_np(x) -> np.ndarray | None:
    if x is None:
        return None
    if hasattr(x, "detach"):
        return x.detach().cpu().numpy()
    return np.asarray(x)


class ScreenView:
    """Camera view of the backdrop: stars and planets projected to NDC.

    Pure visualization - reads the published frame and the camera, renders,
    computes nothing the simulation uses. Axes span NDC ``[-1, 1]`` so a mouse
    position over the axes maps straight to the surface rectangle.
    """

    __slots__ = (
        "ax",
        "max_points",
        "star_size",
        "_stars",
        "_planets",
        "_pointer",
        "_sample_idx",
        "_pending",
    )

    def __init__(self, ax: Any, *, max_points: int = 4000, star_size: float = 0.6) -> None:
        self.ax: Any = ax
        self.max_points = int(max(1, max_points))
        self.star_size = float(star_size)

        ax.set_facecolor("#02030a")
        ax.set(xlim=(-1.0, 1.0), ylim=(-1.0, 1.0), xticks=[], yticks=[])
        for spine in ax.spines.values():
            spine.set_color("#222")

        self._stars = ax.scatter([], [], s=1.0, c=[], marker=".", linewidths=0.0, alpha=0.95)
        self._planets = ax.scatter([], [], s=[], c=[], marker="o", linewidths=0.0, alpha=0.9, zorder=3)
        (self._pointer,) = ax.plot([], [], marker="+", color="#88aaff", alpha=0.6, markersize=10, zorder=4)
        self._sample_idx: np.ndarray | None = None
        self._pending: dict | None = None

    def _indices(self, n: int) -> np.ndarray:
        # Fixed stride subset so the same stars are shown every frame.
        if self._sample_idx is None or self._sample_idx.size != min(n, self.max_points):
            self._sample_idx = np.unique(np.linspace(0, n - 1, min(n, self.max_points)).astype(np.int64))
        return self._sample_idx

    def ingest(self, state: dict) -> None:
        self._pending = state

    def render(self) -> list[object]:
        state = self._pending
        if state is None:
            return []
        self._pending = None

        camera = state.get("camera")
        if not isinstance(camera, CameraState):
            return []

        positions = state.get("positions")
        if positions is not None and len(positions) > 0:
            pos = torch.as_tensor(positions).detach().cpu()
            idx = torch.from_numpy(self._indices(int(pos.shape[0])))
            ndc, depth = camera.project(pos[idx])
            ndc_np = ndc.numpy()
            depth_np = depth.numpy()
            visible = (depth_np > camera.near) & (depth_np < camera.far) & (np.abs(ndc_np) <= 1.0).all(axis=1)

            colors = _to_np(state.get("colors"))
            rgb = colors[idx.numpy()][visible] if colors is not None else np.full((int(visible.sum()), 3), 0.8)
            # Size attenuation with depth.
            sizes = np.clip(400.0 * self.star_size / np.maximum(depth_np[visible], 1e-3), 0.05, 20.0)
            self._stars.set_offsets(ndc_np[visible])
            self._stars.set_sizes(sizes)
            self._stars.set_facecolors(np.clip(rgb, 0.0, 1.0))
        else:
            self._stars.set_offsets(np.zeros((0, 2)))

        orbit_positions = state.get("orbit_positions")
        if orbit_positions is not None and len(orbit_positions) > 0:
            ndc, depth = camera.project(torch.as_tensor(orbit_positions).detach().cpu())
            depth_np = depth.numpy()
            visible = depth_np > camera.near
            radii = _to_np(state.get("orbit_radii"))
            radii = radii if radii is not None else np.ones(len(depth_np))
            # Marker area in pt^2 from the apparent radius.
            sizes = np.clip((150.0 * radii / np.maximum(depth_np, 1e-3)) ** 2, 4.0, 4000.0)
            ocolors = _to_np(state.get("orbit_colors"))
            ocolors = ocolors if ocolors is not None else np.ones((len(depth_np), 3))
            self._planets.set_offsets(ndc.numpy()[visible])
            self._planets.set_sizes(sizes[visible])
            self._planets.set_facecolors(np.clip(ocolors[visible], 0.0, 1.0))
        else:
            self._planets.set_offsets(np.zeros((0, 2)))

        pointer = state.get("pointer")
        if pointer is not None:
            pndc, pdepth = camera.project(torch.as_tensor(pointer).detach().cpu().reshape(1, 3))
            if float(pdepth[0]) > camera.near:
                self._pointer.set_data([float(pndc[0, 0])], [float(pndc[0, 1])])
            else:
                self._pointer.set_data([], [])

        return [self._stars, self._planets, self._pointer]
