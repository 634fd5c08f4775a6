"""Tests for the closed-form planet orbits.

Validates:
- Body positions at known orbit times
- Orbit time and spins accumulate from dt (many small steps == one big step)
- `state_dict` / `load_state_dict` restore the exact transforms
- Non-finite or negative dt is ignored

Run with:
    pytest tests/test_orbits.py -v
"""

from __future__ import annotations

import math

import pytest

from stardrift.field.config import OrbitConfig
from stardrift.field.orbits import OrbitAxis, OrbitBody, OrbitDriver, default_bodies


@pytest.fixture
def driver():
    return OrbitDriver(OrbitConfig())


def by_name(transforms):
    return {t.name: t for t in transforms}


class TestBodies:
    def test_initial_positions(self, driver):
        tf = by_name(driver.transforms())
        assert tf["planet1"].position == pytest.approx((22.0, 0.0, 0.0))
        assert tf["planet2"].position == pytest.approx((-30.0, 0.0, 12.0))
        assert tf["planet1"].world_position == pytest.approx(tf["planet1"].position)
        assert tf["planet1"].radius == 5.0
        assert tf["planet2"].color == "#ffa15c"

    def test_position_formula(self):
        body = default_bodies()[0]
        t = 1.3
        assert body.position_at(t) == pytest.approx(
            (math.cos(t) * 22.0, math.sin(1.2 * t) * 10.0, math.sin(t) * -8.0)
        )

    def test_invalid_waveform(self):
        with pytest.raises(ValueError):
            OrbitAxis(1.0, waveform="tan")

    def test_duplicate_names_rejected(self):
        body = default_bodies()[0]
        with pytest.raises(ValueError):
            OrbitDriver(bodies=[body, body])


class TestAdvance:
    def test_orbit_time_rate(self, driver):
        driver.advance(2.0)
        assert driver.t_orbit == pytest.approx(0.5)
        assert driver.group_rotation == pytest.approx(0.1)
        assert driver.rotations["planet1"] == pytest.approx(0.5)
        assert driver.rotations["planet2"] == pytest.approx(0.7)

    def test_small_steps_match_one_step(self):
        a = OrbitDriver()
        b = OrbitDriver()
        for _ in range(300):
            a.advance(0.01)
        b.advance(3.0)
        assert a.t_orbit == pytest.approx(b.t_orbit)
        for ta, tb in zip(a.transforms(), b.transforms()):
            assert ta.world_position == pytest.approx(tb.world_position)
            assert ta.rotation_y == pytest.approx(tb.rotation_y)

    def test_group_rotation_spins_about_y(self, driver):
        driver.advance(10.0)
        for tf in driver.transforms():
            lx, ly, lz = tf.position
            wx, wy, wz = tf.world_position
            assert wy == pytest.approx(ly)
            assert math.hypot(wx, wz) == pytest.approx(math.hypot(lx, lz))
            assert (wx, wz) != pytest.approx((lx, lz))

    @pytest.mark.parametrize("dt", [float("nan"), float("inf"), -1.0])
    def test_bad_dt_ignored(self, driver, dt):
        driver.advance(0.5)
        before = driver.state_dict()
        transforms = driver.advance(dt)
        assert driver.state_dict() == before
        assert len(transforms) == 2

    def test_zero_dt_is_a_no_op(self, driver):
        before = driver.state_dict()
        driver.advance(0.0)
        assert driver.state_dict() == before


class TestState:
    def test_round_trip(self, driver):
        for _ in range(37):
            driver.advance(0.016)
        restored = OrbitDriver()
        restored.load_state_dict(driver.state_dict())
        for ta, tb in zip(driver.transforms(), restored.transforms()):
            assert ta == tb

    def test_transforms_at_is_pure(self, driver):
        tf = by_name(driver.transforms_at(2.0))
        assert driver.t_orbit == 0.0
        assert tf["planet1"].position[0] == pytest.approx(math.cos(2.0) * 22.0)

    def test_non_finite_orbit_time_rejected(self, driver):
        with pytest.raises(ValueError):
            driver.load_state_dict({"t_orbit": float("nan")})

    def test_custom_body(self):
        body = OrbitBody(
            name="moon",
            x=OrbitAxis(5.0, 2.0, "sin"),
            y=OrbitAxis(0.0),
            z=OrbitAxis(5.0, 2.0, "cos"),
            rotation_rate=1.0,
        )
        driver = OrbitDriver(bodies=[body])
        (tf,) = driver.advance(4.0)
        assert tf.position == pytest.approx((5.0 * math.sin(2.0), 0.0, 5.0 * math.cos(2.0)))
        assert tf.rotation_y == pytest.approx(4.0)
