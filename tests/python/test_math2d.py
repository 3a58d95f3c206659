from __future__ import annotations

import math

from pygame.math import Vector2
from pytest import approx

from aviary.sim.utils.math2d import (
    _blend_heading,
    _safe_normalize_xy,
    _safe_normalize_xy_f,
    _wrap_angle,
)


def test_normalizing_zero_vector_yields_zero():
    assert _safe_normalize_xy(0.0, 0.0) == Vector2()
    x, y = _safe_normalize_xy_f(0.0, 0.0)
    assert (x, y) == (0.0, 0.0)
    assert not math.isnan(x) and not math.isnan(y)


def test_normalize_returns_unit_length():
    result = _safe_normalize_xy(3.0, 4.0)
    assert result.length() == approx(1.0)
    assert result.x == approx(0.6)
    assert result.y == approx(0.8)


def test_wrap_angle_stays_in_half_open_range():
    for angle in [-7.0, -math.pi, -1.0, 0.0, 1.0, math.pi, 4.0, 10.0]:
        wrapped = _wrap_angle(angle)
        assert -math.pi < wrapped <= math.pi
        assert math.cos(wrapped) == approx(math.cos(angle))
        assert math.sin(wrapped) == approx(math.sin(angle))


def test_blend_heading_takes_shortest_way_round():
    start = math.radians(170.0)
    target = math.radians(-170.0)
    blended = _blend_heading(start, target, 0.5)
    assert abs(_wrap_angle(blended - math.pi)) == approx(0.0, abs=1e-9)


def test_blend_heading_never_overshoots():
    for current, target in [(0.0, 3.0), (0.0, -3.0), (2.5, -2.5), (1.0, 1.2)]:
        gap = _wrap_angle(target - current)
        for fraction in [0.0, 0.1, 0.5, 1.0, 3.0]:
            turned = _wrap_angle(_blend_heading(current, target, fraction) - current)
            assert abs(turned) <= abs(gap) * min(1.0, fraction) + 1e-9
            if turned:
                assert math.copysign(1.0, turned) == math.copysign(1.0, gap)


def test_blend_heading_max_step_caps_turn_both_ways():
    assert _blend_heading(0.0, 3.0, 1.0, max_step=0.2) == approx(0.2)
    assert _blend_heading(0.0, -3.0, 1.0, max_step=0.2) == approx(-0.2)
    assert _blend_heading(0.0, 0.1, 0.5, max_step=0.2) == approx(0.05)
