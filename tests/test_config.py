"""Tests for the backdrop configuration dataclasses.

Run with:
    pytest tests/test_config.py -v
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from stardrift.field.config import (
    BackdropConfig,
    CameraConfig,
    ClockConfig,
    FieldConfig,
    OrbitConfig,
)


class TestBackdropConfig:
    def test_defaults_build_every_section(self):
        cfg = BackdropConfig()
        assert isinstance(cfg.field, FieldConfig)
        assert isinstance(cfg.orbit, OrbitConfig)
        assert isinstance(cfg.clock, ClockConfig)
        assert isinstance(cfg.camera, CameraConfig)
        assert cfg.profile_output_dir == Path("artifacts/profiles")
        assert cfg.field.num_particles == 20000
        assert cfg.clock.max_dt == pytest.approx(0.033)

    def test_sections_are_not_shared(self):
        a = BackdropConfig()
        b = BackdropConfig()
        assert a.field is not b.field
        assert a.orbit is not b.orbit
        a.field.seed = 42
        assert b.field.seed == 0

    def test_replace_keeps_sections(self):
        field_cfg = FieldConfig(num_particles=10)
        cfg = replace(BackdropConfig(field=field_cfg), max_frames=3)
        assert cfg.field is field_cfg
        assert cfg.max_frames == 3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"max_frames": -1},
            {"target_fps": 0.0},
            {"dashboard_fps": 0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            BackdropConfig(**kwargs)

    def test_dashboard_fps_from_env(self, monkeypatch):
        monkeypatch.setenv("STARDRIFT_DASHBOARD_FPS", "12")
        assert BackdropConfig.dashboard_fps_from_env(30) == 12
        monkeypatch.setenv("STARDRIFT_DASHBOARD_FPS", "fast")
        assert BackdropConfig.dashboard_fps_from_env(30) == 30
        monkeypatch.setenv("STARDRIFT_DASHBOARD_FPS", "-5")
        assert BackdropConfig.dashboard_fps_from_env(30) == 30
