from __future__ import annotations

import math

from pygame.math import Vector2

_EPSILON_SQ = 1e-10


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq < _EPSILON_SQ:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _safe_normalize_xy_f(x: float, y: float) -> tuple[float, float]:
    magnitude_sq = x * x + y * y
    if magnitude_sq < _EPSILON_SQ:
        return 0.0, 0.0
    inv = 1.0 / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def _forward_from_heading(heading: float) -> Vector2:
    return Vector2(math.cos(heading), math.sin(heading))


def _heading_from_vector(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _wrap_angle(angle: float) -> float:
    """Wrap an angle in radians into (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def _blend_heading(current: float, target: float, fraction: float, max_step: float | None = None) -> float:
    """Turn `current` toward `target` by `fraction` of the shortest signed gap.

    With `max_step` the turn is also capped at that many radians either way.
    """
    fraction = _clamp_value(fraction, 0.0, 1.0)
    gap = _wrap_angle(target - current)
    step = gap * fraction
    if max_step is not None:
        step = _clamp_value(step, -max_step, max_step)
    return _wrap_angle(current + step)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
