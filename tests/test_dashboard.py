"""Headless tests for the backdrop dashboard (Agg backend).

Validates:
- The dashboard renders published frames without a window
- Mouse motion over the camera view reaches the backdrop as a pointer move
- Surface geometry uses client pixels with a top-left origin

Run with:
    pytest tests/test_dashboard.py -v
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest
import torch
from matplotlib.backend_bases import MouseEvent

from stardrift.field.config import BackdropConfig, FieldConfig
from stardrift.field.projector import PointerProjector, device_to_ndc
from stardrift.field.simulator import Backdrop
from stardrift.instrument.dashboard import DashboardSession


@pytest.fixture
def session():
    s = DashboardSession(fps=1000, video_path=None, show=True, max_points=500)
    yield s
    s.close()


@pytest.fixture
def backdrop(session):
    cfg = BackdropConfig(field=FieldConfig(num_particles=300, seed=5), target_fps=None, dashboard_enabled=False)
    b = Backdrop(cfg, instruments=[session]).init()
    yield b
    b.teardown()


class TestDashboardSession:
    def test_headless_backend_renders_manually(self, session, backdrop):
        assert not session.show
        assert session.animation is None
        backdrop.frame(0.0)
        assert session.frames_rendered == 1
        assert backdrop.instruments == [session]

    def test_surface_rect(self, session):
        rect = session.surface_rect()
        assert rect.width > 0.0
        assert rect.height > 0.0
        fig_h = float(session.canvas.fig.bbox.height)
        assert rect.top >= 0.0
        assert rect.top + rect.height <= fig_h + 1e-6

    def test_to_client_flips_y(self, session):
        fig_h = float(session.canvas.fig.bbox.height)
        assert session.canvas.to_client(10.0, 0.0) == pytest.approx((10.0, fig_h))
        assert session.canvas.to_client(10.0, fig_h) == pytest.approx((10.0, 0.0))

    def test_resize_reports_view_size(self, session, backdrop):
        session.connect_resize(backdrop.resize)
        rect = session.surface_rect()
        assert backdrop.camera_rig.state.aspect == pytest.approx(rect.width / rect.height)

    def test_mouse_motion_moves_pointer(self, session, backdrop):
        session.connect_pointer(backdrop.pointer_moved)
        backdrop.frame(0.0)

        bbox = session.canvas.ax_screen.bbox
        cx = 0.5 * (bbox.x0 + bbox.x1)
        cy = 0.5 * (bbox.y0 + bbox.y1)
        fig_canvas = session.canvas.fig.canvas
        event = MouseEvent("motion_notify_event", fig_canvas, cx, cy)
        fig_canvas.callbacks.process("motion_notify_event", event)

        camera = backdrop.camera_rig.state
        out = backdrop.frame(16.0)

        # Mouse events carry whole display pixels, so project the delivered position.
        ndc = device_to_ndc(*session.canvas.to_client(event.x, event.y), session.canvas.surface_rect())
        expected = PointerProjector().project(ndc[0], ndc[1], camera).to(torch.float32)
        assert torch.allclose(out.pointer, expected, atol=1e-4)
        # A pixel off the view center is a fraction of a world unit on the z=0 plane.
        assert float(out.pointer.norm()) < 0.5
        assert float(out.pointer[2]) == pytest.approx(0.0, abs=1e-5)
        assert backdrop.pointer.updates == 1

    def test_motion_outside_view_is_ignored(self, session, backdrop):
        session.connect_pointer(backdrop.pointer_moved)
        ax3d = session.canvas.ax3d.bbox
        fig_canvas = session.canvas.fig.canvas
        event = MouseEvent("motion_notify_event", fig_canvas, 0.5 * (ax3d.x0 + ax3d.x1), 0.5 * (ax3d.y0 + ax3d.y1))
        fig_canvas.callbacks.process("motion_notify_event", event)
        backdrop.frame(0.0)
        assert backdrop.pointer.updates == 0

    def test_save(self, session, backdrop, tmp_path):
        backdrop.frame(0.0)
        path = tmp_path / "frames" / "backdrop.png"
        session.save(path)
        assert path.exists()


class TestRecording:
    def test_gif_recording(self, tmp_path):
        path = tmp_path / "video" / "backdrop.gif"
        session = DashboardSession(fps=1000, video_path=path, max_points=200)
        cfg = BackdropConfig(field=FieldConfig(num_particles=100), target_fps=None, dashboard_enabled=False)
        b = Backdrop(cfg, instruments=[session]).init()
        assert session.recorder.recording
        b.frame(0.0)
        assert session.recorder.frames >= 1
        b.teardown()
        assert not session.recorder.recording
        assert path.exists()
