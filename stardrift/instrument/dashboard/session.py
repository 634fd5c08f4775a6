from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional

from tensordict import TensorDict

from stardrift.field.config import BackdropConfig
from stardrift.field.projector import SurfaceRect

PointerCallback = Callable[[float, float, SurfaceRect], None]
ResizeCallback = Callable[[float, float], None]


class DashboardSession:
    """Stand-in renderer for a backdrop run: live window, recording, mouse input.

    `update(state)` only stores the newest published frame. Drawing happens at
    the dashboard rate (a `FuncAnimation` timer when a window is open, inline
    otherwise), so a slow figure never slows the simulation down.
    """

    def __init__(
        self,
        *,
        fps: int = 30,
        video_path: Optional[Path] = None,
        show: bool = True,
        max_points: int = 4000,
        extent: float = 600.0,
    ) -> None:
        # pyplot is imported here so run.py can pick the backend first.
        import matplotlib.pyplot as plt
        from matplotlib.animation import FuncAnimation

        from stardrift.instrument.dashboard.canvas import Canvas
        from stardrift.instrument.dashboard.recorder import Recorder

        self._plt = plt
        self.fps = max(1, int(fps))
        self.show = bool(show) and "agg" not in str(plt.get_backend()).lower()

        self.canvas = Canvas(max_points=max_points, extent=extent)
        self.recorder = Recorder(self.canvas.fig)
        self.video_path = None if video_path is None else Path(video_path)
        if self.video_path is not None:
            self.recorder.start(self.video_path, fps=self.fps)

        self._min_period = 1.0 / self.fps
        self._last_render = 0.0
        self._latest: Optional[TensorDict] = None
        self._connections: list[int] = []
        self.frames_rendered = 0

        self.animation: Optional[FuncAnimation] = None
        if self.show:
            self.animation = FuncAnimation(
                self.canvas.fig,
                self._animate_frame,
                interval=max(1, round(1000 / self.fps)),
                blit=False,  # 3D axes do not blit reliably
                cache_frame_data=False,
            )
            plt.ion()
            plt.show(block=False)

    @staticmethod
    def from_config(config: BackdropConfig) -> "DashboardSession":
        return DashboardSession(
            fps=BackdropConfig.dashboard_fps_from_env(int(config.dashboard_fps)),
            video_path=config.dashboard_video_path,
            max_points=int(config.dashboard_max_points),
            extent=float(config.field.outer_bound),
        )

    # ------------------------------------------------------------------
    # Input wiring
    # ------------------------------------------------------------------

    def surface_rect(self) -> SurfaceRect:
        return self.canvas.surface_rect()

    def _connect(self, event_name: str, handler) -> None:
        self._connections.append(self.canvas.fig.canvas.mpl_connect(event_name, handler))

    def connect_pointer(self, callback: PointerCallback) -> None:
        """Forward mouse motion over the camera view as client pixels."""

        def on_motion(event) -> None:
            if event.inaxes is not self.canvas.ax_screen or event.x is None or event.y is None:
                return
            client_x, client_y = self.canvas.to_client(event.x, event.y)
            callback(client_x, client_y, self.canvas.surface_rect())

        self._connect("motion_notify_event", on_motion)

    def connect_resize(self, callback: ResizeCallback) -> None:
        """Report the camera view size now and whenever the window is resized."""

        def on_resize(_event=None) -> None:
            rect = self.canvas.surface_rect()
            callback(rect.width, rect.height)

        self._connect("resize_event", on_resize)
        on_resize()

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def update(self, state: TensorDict) -> None:
        self._latest = state
        if self.animation is None:
            self._animate_frame(0)
        else:
            # Let the GUI run the animation timer and deliver mouse events.
            self._plt.pause(0.001)

    def _animate_frame(self, _frame_num: int) -> list:
        state = self._latest
        now = time.perf_counter()
        if state is None or now - self._last_render < self._min_period:
            return []
        self._latest = None
        self._last_render = now

        self.canvas.ingest(state)
        self.canvas.render()
        self.recorder.grab_frame()
        self.frames_rendered += 1
        return []

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.canvas.fig.savefig(str(path), facecolor=self.canvas.fig.get_facecolor())

    def stop_recording(self) -> None:
        if self.animation is not None:
            self.animation.event_source.stop()
        self.recorder.stop()

    def close(self) -> None:
        for cid in self._connections:
            self.canvas.fig.canvas.mpl_disconnect(cid)
        self._connections.clear()
        if self.animation is not None:
            self.animation.event_source.stop()
            # Closing before the first draw would otherwise warn about an unused animation.
            self.animation._draw_was_started = True
            self.animation = None
        self._plt.close(self.canvas.fig)
