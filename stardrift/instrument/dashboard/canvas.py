from __future__ import annotations

import matplotlib.gridspec as gridspec
import matplotlib.pyplot as plt

from stardrift.field.camera import CameraState
from stardrift.field.projector import SurfaceRect
from stardrift.instrument.dashboard.info import InfoPlot
from stardrift.instrument.dashboard.screen import ScreenView
from stardrift.instrument.dashboard.threed import ThreeD


class Canvas:
    """Dashboard layout: camera view on the left, overview and stats on the right."""

    def __init__(self, *, max_points: int = 4000, extent: float = 600.0) -> None:
        self.fig = plt.figure(figsize=(14, 7.5), facecolor="#050510")
        self.fig.subplots_adjust(left=0.02, right=0.98, top=0.96, bottom=0.04)

        gs_main = gridspec.GridSpec(
            1,
            2,
            figure=self.fig,
            width_ratios=[68, 32],
            wspace=0.06,
        )
        self.ax_screen = self.fig.add_subplot(gs_main[0, 0])

        gs_right = gs_main[0, 1].subgridspec(2, 1, height_ratios=[62, 38], hspace=0.1)
        self.ax3d = self.fig.add_subplot(gs_right[0, 0], projection="3d")
        self.ax_info = self.fig.add_subplot(gs_right[1, 0])

        self._render_scalar_keys = (
            "step",
            "dt",
            "fps",
            "generation",
            "t_orbit",
            "repelled",
            "reseeded",
        )
        self.plots = {
            "screen": ScreenView(ax=self.ax_screen, max_points=max_points),
            "three": ThreeD(ax=self.ax3d, extent=extent, max_points=max(1, max_points // 2)),
            "info": InfoPlot(ax=self.ax_info),
        }

        self.fig.canvas.draw_idle()

    def surface_rect(self) -> SurfaceRect:
        """Camera view axes in client pixels (top-left origin)."""
        bbox = self.ax_screen.bbox
        fig_h = float(self.fig.bbox.height)
        return SurfaceRect(
            left=float(bbox.x0),
            top=fig_h - float(bbox.y1),
            width=float(bbox.width),
            height=float(bbox.height),
        )

    def to_client(self, x: float, y: float) -> tuple[float, float]:
        """Matplotlib display coords (bottom-left origin) -> client pixels."""
        return float(x), float(self.fig.bbox.height) - float(y)

    def ingest(self, state) -> None:
        render_state = self._prepare_render_state(state)
        for plot in self.plots.values():
            plot.ingest(render_state)

    def render(self) -> None:
        for plot in self.plots.values():
            plot.render()
        self.fig.canvas.draw_idle()

    def _prepare_render_state(self, state) -> dict:
        """Plain dict view of a frame with scalars as floats and the camera rebuilt."""
        out = {key: state.get(key) for key in state.keys()}
        for key in self._render_scalar_keys:
            v = out.get(key)
            if v is not None and hasattr(v, "item"):
                out[key] = float(v.item())
        if out.get("camera_position") is not None:
            def vec(key):
                return tuple(float(v) for v in out[key].reshape(-1).tolist())

            out["camera"] = CameraState(
                position=vec("camera_position"),
                target=vec("camera_target"),
                fov_deg=float(out["camera_fov"]),
                aspect=float(out["camera_aspect"]),
                near=float(out["camera_near"]),
                far=float(out["camera_far"]),
            )
        return out
