from __future__ import annotations

from typing import Any

import numpy as np


class ThreeD:
    """3D overview of the whole field (outer bound, stars, planets, pointer).

    Pure visualization - reads the frame state, renders it, computes nothing.
    Stars are colored by distance from the pointer so the repulsion pocket
    stands out.
    """

    __slots__ = (
        "ax",
        "extent",
        "max_points",
        "_stars",
        "_planets",
        "_pointer",
        "_sample_idx",
        "_pending",
    )

    def __init__(self, ax: Any, *, extent: float = 600.0, max_points: int = 2000) -> None:
        self.ax: Any = ax
        self.extent = float(extent)
        self.max_points = int(max(1, max_points))

        # Axis styling -- dark theme
        ax.set_facecolor("#0e0e1a")
        for pane in (ax.xaxis.pane, ax.yaxis.pane, ax.zaxis.pane):
            pane.set_facecolor("#141424")
            pane.set_alpha(0.6)
        for axis in (ax.xaxis, ax.yaxis, ax.zaxis):
            axis.label.set_color("#aaa")
        e = self.extent
        ax.set(xlim=(-e, e), ylim=(-e, e), zlim=(-e, e), xlabel="X", ylabel="Y", zlabel="Z")
        ax.tick_params(labelsize=5, colors="#aaa", pad=0)

        self._stars = ax.scatter([], [], [], s=2, c=[], cmap="inferno_r", alpha=0.6, depthshade=True)
        self._planets = ax.scatter([], [], [], s=40, c="#ffffff", alpha=0.95)
        self._pointer = ax.scatter([], [], [], s=60, marker="x", c="#88aaff")
        self._sample_idx: np.ndarray | None = None
        self._pending: dict | None = None

    def ingest(self, state: dict) -> None:
        self._pending = state

    def render(self) -> list[object]:
        state = self._pending
        if state is None:
            return []
        self._pending = None

        def to_np(x):
            if x is None:
                return None
            if hasattr(x, "detach"):
                return x.detach().cpu().numpy()
            return np.asarray(x)

        pos = to_np(state.get("positions"))
        pointer = to_np(state.get("pointer"))
        if pos is None or len(pos) == 0:
            self._stars._offsets3d = ([], [], [])
            self._stars.set_array(np.array([], dtype=np.float32))
        else:
            n = int(len(pos))
            if self._sample_idx is None or self._sample_idx.size != min(n, self.max_points):
                self._sample_idx = np.unique(np.linspace(0, n - 1, min(n, self.max_points)).astype(np.int64))
            sub = pos[self._sample_idx].astype(np.float64)
            if pointer is not None:
                d = np.linalg.norm(sub - pointer.reshape(1, 3), axis=1)
            else:
                d = np.linalg.norm(sub, axis=1)
            d = np.nan_to_num(d, nan=0.0, posinf=0.0, neginf=0.0)
            self._stars._offsets3d = (sub[:, 0], sub[:, 1], sub[:, 2])
            self._stars.set_array(np.clip(d / self.extent, 0.0, 1.0).astype(np.float32))

        planets = to_np(state.get("orbit_positions"))
        if planets is not None and len(planets) > 0:
            self._planets._offsets3d = (planets[:, 0], planets[:, 1], planets[:, 2])
            ocolors = to_np(state.get("orbit_colors"))
            if ocolors is not None:
                self._planets.set_facecolors(np.clip(ocolors, 0.0, 1.0))
        if pointer is not None:
            p = pointer.reshape(3)
            self._pointer._offsets3d = ([p[0]], [p[1]], [p[2]])

        step = state.get("step", 0)
        if hasattr(step, "item"):
            step = step.item()
        n = 0 if pos is None else len(pos)
        self.ax.set_title(f"Frame {int(step)} | {n} stars", fontsize=7, color="#ddd", pad=2)
        return [self._stars, self._planets, self._pointer]
