from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import matplotlib.colors as mcolors
import numpy as np
import torch
from tensordict import TensorDict

from stardrift.console import console

from .camera import CameraRig, CameraState
from .clock import FrameClock
from .config import BackdropConfig
from .orbits import OrbitDriver, OrbitTransform
from .particles import FieldStepStats, ParticleField
from .projector import PointerProjector, PointerState, SurfaceRect


@dataclass
class FrameOutput:
    """What one frame hands to the renderer."""
    step: int
    dt: float
    stats: Optional[FieldStepStats]
    orbits: List[OrbitTransform]
    camera: CameraState
    pointer: torch.Tensor


class Backdrop:
    """Application object owning the field, orbits, clock, camera and pointer.

    Lifecycle: `init` -> (`resize` / `pointer_moved` / `frame` | `run`) -> `teardown`.
    Pointer input may come from another thread; it is queued (last value wins)
    and projected once at the start of the next frame.
    """

    def __init__(
        self,
        config: Optional[BackdropConfig] = None,
        *,
        instruments: Sequence[Any] = (),
        now_fn: Optional[Callable[[], float]] = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = config or BackdropConfig()
        self.instruments: List[Any] = list(instruments)
        self._now = now_fn or (lambda: time.perf_counter() * 1000.0)
        self._sleep = sleep_fn
        self._running = threading.Event()
        self._input_lock = threading.Lock()
        self._pending_input: Optional[tuple[float, float, SurfaceRect]] = None

        self.initialized = False
        self.frame_count = 0
        self.field: Optional[ParticleField] = None
        self.orbits: Optional[OrbitDriver] = None
        self.clock: Optional[FrameClock] = None
        self.camera_rig: Optional[CameraRig] = None
        self.pointer: Optional[PointerState] = None
        self.surface = SurfaceRect(0.0, 0.0, float(self.cfg.width), float(self.cfg.height))
        self.last_output: Optional[FrameOutput] = None

    # ========================================
    # Lifecycle
    # ========================================

    def init(self) -> "Backdrop":
        if self.initialized:
            return self
        cfg = self.cfg
        self.camera_rig = CameraRig(cfg.camera, width=cfg.width, height=cfg.height)
        # The first frame measures from init, not from itself.
        self.clock = FrameClock(cfg.clock, start_ms=self._now())
        self.pointer = PointerState(PointerProjector())
        self.field = ParticleField(cfg.field)
        self.orbits = OrbitDriver(cfg.orbit)
        self.frame_count = 0
        self.initialized = True
        return self

    def resize(self, width: float, height: float) -> bool:
        """Surface size changed. Only the camera aspect and the surface rect care."""
        if self.camera_rig is None:
            raise RuntimeError("Backdrop.resize() called before init()")
        if not self.camera_rig.resize(width, height):
            return False
        self.surface = SurfaceRect(self.surface.left, self.surface.top, float(width), float(height))
        return True

    def teardown(self) -> None:
        self.stop()
        for inst in self.instruments:
            for name in ("stop_recording", "stop", "close"):
                fn = getattr(inst, name, None)
                if callable(fn):
                    fn()
        self.instruments.clear()
        self.field = None
        self.orbits = None
        self.initialized = False

    # ========================================
    # Input
    # ========================================

    def pointer_moved(self, client_x: float, client_y: float, rect: Optional[SurfaceRect] = None) -> None:
        with self._input_lock:
            self._pending_input = (float(client_x), float(client_y), rect or self.surface)

    def touch_moved(self, touches: Sequence[tuple[float, float]], rect: Optional[SurfaceRect] = None) -> None:
        if touches:
            client_x, client_y = touches[0]
            self.pointer_moved(client_x, client_y, rect)

    def _apply_pending_input(self) -> None:
        with self._input_lock:
            pending = self._pending_input
            self._pending_input = None
        if pending is None:
            return
        client_x, client_y, rect = pending
        # Project with the camera the user was looking at when moving.
        self.pointer.update(client_x, client_y, rect, self.camera_rig.state)

    # ========================================
    # Frame
    # ========================================

    def frame(self, now_ms: Optional[float] = None) -> FrameOutput:
        if not self.initialized:
            raise RuntimeError("Backdrop.frame() called before init()")
        now = self._now() if now_ms is None else float(now_ms)

        dt = self.clock.tick(now)
        self._apply_pending_input()
        pointer = self.pointer.snapshot()
        stats = self.field.step(dt, pointer)
        orbits = self.orbits.advance(dt)
        camera = self.camera_rig.update(now)

        self.frame_count += 1
        out = FrameOutput(
            step=self.frame_count,
            dt=dt,
            stats=stats,
            orbits=orbits,
            camera=camera,
            pointer=self.field.pointer,
        )
        self.last_output = out
        self._present(out)
        return out

    def snapshot(self, out: Optional[FrameOutput] = None) -> TensorDict:
        """Published frame as a TensorDict for instruments."""
        out = out or self.last_output
        if out is None:
            raise RuntimeError("no frame has been published yet")
        field = self.field
        orbit_pos = torch.tensor([o.world_position for o in out.orbits], dtype=torch.float32).reshape(-1, 3)
        orbit_rgb = torch.tensor(
            np.array([mcolors.to_rgb(o.color) for o in out.orbits], dtype=np.float32).reshape(-1, 3)
        )
        stats = out.stats
        cam = out.camera
        return TensorDict(
            {
                "positions": field.positions,
                "colors": field.colors,
                "pointer": out.pointer.detach().to(torch.float32),
                "orbit_positions": orbit_pos,
                "orbit_radii": torch.tensor([o.radius for o in out.orbits], dtype=torch.float32),
                "orbit_colors": orbit_rgb,
                "orbit_rotations": torch.tensor([o.rotation_y for o in out.orbits], dtype=torch.float32),
                "group_rotation": torch.tensor(self.orbits.group_rotation),
                "t_orbit": torch.tensor(self.orbits.t_orbit),
                "camera_position": torch.tensor(cam.position),
                "camera_target": torch.tensor(cam.target),
                "camera_fov": torch.tensor(cam.fov_deg),
                "camera_aspect": torch.tensor(cam.aspect),
                "camera_near": torch.tensor(cam.near),
                "camera_far": torch.tensor(cam.far),
                "step": torch.tensor(out.step),
                "dt": torch.tensor(out.dt),
                "fps": torch.tensor(self.clock.smoothed_rate),
                "generation": torch.tensor(field.generation),
                "repelled": torch.tensor(stats.repelled if stats is not None else 0),
                "reseeded": torch.tensor(stats.reseeded if stats is not None else 0),
            },
            batch_size=[],
        )

    def _present(self, out: FrameOutput) -> None:
        if self.instruments:
            state = self.snapshot(out)
            for inst in list(self.instruments):
                try:
                    inst.update(state)
                except Exception as exc:
                    console.error(f"Instrument {type(inst).__name__} failed, detaching", detail=str(exc))
                    self.instruments.remove(inst)
        self.field.mark_consumed()

    # ========================================
    # Run loop
    # ========================================

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def stop(self) -> None:
        self._running.clear()

    def run(self, max_frames: Optional[int] = None) -> int:
        """Frame loop until `stop()` or the frame limit. Returns frames rendered."""
        self.init()
        limit = max_frames if max_frames is not None else self.cfg.max_frames
        period = 1.0 / float(self.cfg.target_fps) if self.cfg.target_fps else None
        self._running.set()
        frames = 0
        try:
            while self._running.is_set():
                if limit is not None and frames >= int(limit):
                    break
                start = time.perf_counter()
                self.frame()
                frames += 1
                if period is not None:
                    remaining = period - (time.perf_counter() - start)
                    if remaining > 0.0:
                        self._sleep(remaining)
        finally:
            self._running.clear()
        return frames


def run_backdrop(config: BackdropConfig) -> Dict[str, Any]:
    """Run the backdrop with the dashboard until the window loop is stopped.

    Press Ctrl+C to stop.
    """
    seed = int(config.field.seed)
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)

    console.header(
        "STARDRIFT",
        Device=str(config.field.device),
        Stars=f"{config.field.num_particles:,}",
        Repulsion=(
            f"r={config.field.repulsion.radius} s={config.field.repulsion.strength} "
            f"falloff={config.field.repulsion.falloff}"
        ),
        Drift="dt-scaled" if config.field.drift_reference_fps else "per frame",
        Frames="unbounded" if config.max_frames is None else str(config.max_frames),
        Dashboard="ON" if config.dashboard_enabled else "OFF",
    )

    backdrop = Backdrop(config)
    with console.spinner("Seeding stars..."):
        backdrop.init()

    dashboard = None
    if config.dashboard_enabled:
        from stardrift.instrument.dashboard import DashboardSession

        dashboard = DashboardSession.from_config(config)
        dashboard.connect_pointer(backdrop.pointer_moved)
        dashboard.connect_resize(backdrop.resize)
        backdrop.instruments.append(dashboard)
        if config.dashboard_video_path:
            console.info("Recording dashboard", detail=str(config.dashboard_video_path))

    profiler = None
    if config.profile_enabled:
        from stardrift.instrument.profiler import ProfilerInstrument

        profiler = ProfilerInstrument(config.profile_output_dir)
        profiler.start()
        backdrop.instruments.append(profiler)

    console.info("Press Ctrl+C to stop")
    start_time = time.time()
    try:
        backdrop.run()
    except KeyboardInterrupt:
        console.warn("Backdrop stopped by user.")
    finally:
        total_time = time.time() - start_time
        if profiler is not None:
            profiler.stop()
            console.info("Profiler trace", detail=str(profiler.trace_path))
        if dashboard is not None and backdrop.last_output is not None:
            dashboard.save(Path("artifacts") / "backdrop_final.png")
        field = backdrop.field
        summary = {
            "frames": int(backdrop.frame_count),
            "total_time_s": total_time,
            "stars": field.num_particles if field is not None else 0,
            "generation": field.generation if field is not None else 0,
            "t_orbit": backdrop.orbits.t_orbit if backdrop.orbits is not None else 0.0,
            "fps": backdrop.clock.smoothed_rate if backdrop.clock is not None else 0.0,
        }
        backdrop.teardown()

    console.summary(
        "BACKDROP SUMMARY",
        Frames=f"{summary['frames']:,}",
        Time=f"{summary['total_time_s']:.1f}s",
        Stars=f"{summary['stars']:,}",
        Generation=f"{summary['generation']:,}",
        t_orbit=f"{summary['t_orbit']:.3f}",
        FPS=f"{summary['fps']:.0f}",
    )
    return summary
