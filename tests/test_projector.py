"""Tests for pointer projection (client pixels -> NDC -> world plane).

Validates:
- Client-to-NDC mapping on a known rectangle
- Ray / plane intersection for the default camera
- Rejection of parallel rays, planes behind the camera and non-finite input
- `PointerState` keeps the last valid point when an input is rejected

Run with:
    pytest tests/test_projector.py -v
"""

from __future__ import annotations

import math

import pytest
import torch

from stardrift.field.camera import CameraRig, CameraState
from stardrift.field.config import CameraConfig
from stardrift.field.projector import (
    Plane,
    PointerProjector,
    PointerState,
    SurfaceRect,
    device_to_ndc,
)


@pytest.fixture
def rect():
    return SurfaceRect(left=0.0, top=0.0, width=200.0, height=100.0)


@pytest.fixture
def camera():
    return CameraState(position=(0.0, 0.0, 60.0), target=(0.0, 0.0, 0.0), aspect=2.0)


class TestDeviceToNdc:
    @pytest.mark.parametrize(
        "client,expected",
        [
            ((100.0, 50.0), (0.0, 0.0)),
            ((0.0, 0.0), (-1.0, 1.0)),
            ((200.0, 100.0), (1.0, -1.0)),
            ((150.0, 25.0), (0.5, 0.5)),
        ],
    )
    def test_known_points(self, rect, client, expected):
        ndc = device_to_ndc(client[0], client[1], rect)
        assert ndc == pytest.approx(expected)

    def test_offset_rectangle(self):
        rect = SurfaceRect(left=10.0, top=20.0, width=100.0, height=50.0)
        assert device_to_ndc(60.0, 45.0, rect) == pytest.approx((0.0, 0.0))

    def test_outside_rectangle_extrapolates(self, rect):
        x, y = device_to_ndc(-100.0, 150.0, rect)
        assert x == pytest.approx(-2.0)
        assert y == pytest.approx(-2.0)

    @pytest.mark.parametrize("client", [(float("nan"), 0.0), (0.0, float("inf"))])
    def test_non_finite_input(self, rect, client):
        assert device_to_ndc(client[0], client[1], rect) is None

    def test_empty_rectangle(self):
        assert device_to_ndc(0.0, 0.0, SurfaceRect(0.0, 0.0, 0.0, 100.0)) is None
        assert device_to_ndc(0.0, 0.0, SurfaceRect(0.0, 0.0, 100.0, 0.0)) is None


class TestProjector:
    def test_center_ray_hits_origin(self, camera):
        point = PointerProjector().project(0.0, 0.0, camera)
        assert point is not None
        assert point.dtype == torch.float64
        assert torch.allclose(point, torch.zeros(3, dtype=torch.float64), atol=1e-9)

    def test_corner_ray_matches_frustum(self, camera):
        point = PointerProjector().project(1.0, 1.0, camera)
        tan_half = math.tan(math.radians(30.0))
        assert float(point[0]) == pytest.approx(60.0 * tan_half * 2.0, rel=1e-9)
        assert float(point[1]) == pytest.approx(60.0 * tan_half, rel=1e-9)
        assert float(point[2]) == pytest.approx(0.0, abs=1e-9)

    def test_projection_round_trip(self, camera):
        projector = PointerProjector()
        for ndc in ((0.3, -0.7), (-0.9, 0.2), (0.0, 0.99)):
            point = projector.project(ndc[0], ndc[1], camera)
            back, depth = camera.project(point.reshape(1, 3))
            assert float(depth[0]) > 0.0
            assert back[0].tolist() == pytest.approx(list(ndc), abs=1e-9)

    def test_parallel_ray_rejected(self):
        side = CameraState(position=(0.0, 0.0, 5.0), target=(10.0, 0.0, 5.0))
        assert PointerProjector().project(0.0, 0.0, side) is None

    def test_plane_behind_camera_rejected(self):
        away = CameraState(position=(0.0, 0.0, 60.0), target=(0.0, 0.0, 120.0))
        assert PointerProjector().project(0.0, 0.0, away) is None

    def test_custom_plane(self, camera):
        plane = Plane(normal=(0.0, 0.0, 1.0), constant=-10.0)  # z = 10
        point = PointerProjector().project(0.0, 0.0, camera, plane)
        assert float(point[2]) == pytest.approx(10.0)

    def test_non_finite_ndc_rejected(self, camera):
        assert PointerProjector().project(float("nan"), 0.0, camera) is None


class TestPointerState:
    def test_initial_value(self):
        state = PointerState()
        assert state.world_position.tolist() == [0.0, 0.0, 0.0]

    def test_update_moves_pointer(self, rect, camera):
        state = PointerState()
        assert state.update(200.0, 0.0, rect, camera)
        world = state.snapshot()
        assert float(world[0]) > 0.0
        assert float(world[1]) > 0.0
        assert float(world[2]) == pytest.approx(0.0, abs=1e-9)
        assert state.ndc == pytest.approx((1.0, 1.0))
        assert state.updates == 1

    def test_rejected_input_keeps_last_value(self, rect, camera):
        state = PointerState()
        assert state.update(150.0, 25.0, rect, camera)
        before = state.snapshot()

        assert not state.update(float("nan"), 25.0, rect, camera)
        assert not state.update(10.0, 10.0, SurfaceRect(0.0, 0.0, 0.0, 0.0), camera)
        side = CameraState(position=(0.0, 0.0, 5.0), target=(10.0, 0.0, 5.0))
        assert not state.update(100.0, 50.0, rect, side)

        assert torch.equal(state.snapshot(), before)
        assert state.rejected == 3
        assert state.updates == 1

    def test_snapshot_is_a_copy(self, rect, camera):
        state = PointerState()
        snap = state.snapshot()
        snap[0] = 123.0
        assert float(state.snapshot()[0]) == 0.0

    def test_first_touch_wins(self, rect, camera):
        state = PointerState()
        assert state.update_touches([(100.0, 50.0), (200.0, 0.0)], rect, camera)
        assert torch.allclose(state.snapshot(), torch.zeros(3, dtype=torch.float64), atol=1e-9)

    def test_empty_touch_list_ignored(self, rect, camera):
        state = PointerState(initial=(1.0, 2.0, 0.0))
        assert not state.update_touches([], rect, camera)
        assert state.snapshot().tolist() == [1.0, 2.0, 0.0]


class TestCameraRig:
    def test_dolly(self):
        rig = CameraRig(CameraConfig(), width=1280, height=720)
        assert rig.state.position == pytest.approx((0.0, 0.0, 60.0))
        quarter = (math.pi / 2.0) / 0.00025
        cam = rig.update(quarter)
        assert cam.position[2] == pytest.approx(65.0)
        assert cam.aspect == pytest.approx(1280.0 / 720.0)

    def test_resize_updates_aspect(self):
        rig = CameraRig(CameraConfig(), width=100, height=100)
        assert rig.resize(300, 100)
        assert rig.state.aspect == pytest.approx(3.0)

    @pytest.mark.parametrize("size", [(0, 100), (100, -1), (float("nan"), 100)])
    def test_degenerate_resize_ignored(self, size):
        rig = CameraRig(CameraConfig(), width=200, height=100)
        assert not rig.resize(*size)
        assert rig.state.aspect == pytest.approx(2.0)
