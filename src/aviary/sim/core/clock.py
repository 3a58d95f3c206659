from __future__ import annotations

import math

from ...errors import SimulationError


class SimulationClock:
    """Supplies the elapsed-time delta for each tick.

    A tick either uses the delta handed in by the outer loop or falls back to
    the configured fixed time step.
    """

    def __init__(self, time_step: float) -> None:
        self._time_step = time_step
        self._tick = 0
        self._elapsed = 0.0
        self._last_delta = 0.0

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def last_delta(self) -> float:
        return self._last_delta

    @property
    def time_step(self) -> float:
        return self._time_step

    def advance(self, dt: float | None = None) -> float:
        delta = self._time_step if dt is None else float(dt)
        if not math.isfinite(delta) or delta < 0.0:
            raise SimulationError(f"tick delta must be a finite non-negative number, got {dt!r}")
        self._last_delta = delta
        self._elapsed += delta
        self._tick += 1
        return delta

    def reset(self) -> None:
        self._tick = 0
        self._elapsed = 0.0
        self._last_delta = 0.0
