from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    sim_time: float
    herbivores: int
    carnivores: int
    food: int
    births: int
    starvations: int
    kills: int
    meals: int
    average_energy: float
    neighbor_checks: int
    tick_duration_ms: float = 0.0

    @property
    def population(self) -> int:
        return self.herbivores + self.carnivores

    @property
    def deaths(self) -> int:
        return self.starvations + self.kills
