from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ..core.agent import Agent, Species
from ..types.metrics import TickMetrics

if TYPE_CHECKING:
    from .lifecycle import MealOutcome


def create_metrics(
    tick: int,
    sim_time: float,
    agents: Sequence[Agent],
    food_count: int,
    births: int,
    starvations: int,
    outcome: MealOutcome,
    neighbor_checks: int,
    duration_ms: float,
) -> TickMetrics:
    herbivores = 0
    carnivores = 0
    energy_sum = 0.0
    for agent in agents:
        if agent.species == Species.HERBIVORE:
            herbivores += 1
        else:
            carnivores += 1
        energy_sum += agent.energy.value
    population = herbivores + carnivores
    return TickMetrics(
        tick=tick,
        sim_time=sim_time,
        herbivores=herbivores,
        carnivores=carnivores,
        food=food_count,
        births=births,
        starvations=starvations,
        kills=outcome.kills,
        meals=outcome.meals,
        average_energy=0.0 if population == 0 else energy_sum / population,
        neighbor_checks=neighbor_checks,
        tick_duration_ms=duration_ms,
    )
