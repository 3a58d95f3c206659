from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence, Tuple

from pygame.math import Vector2

from ..core.agent import Agent, Energy
from .steering import SteeringDecision

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MealOutcome:
    meals: int = 0
    kills: int = 0


def resolve_meals(world: World, agents: Sequence[Agent], decisions: Sequence[SteeringDecision]) -> MealOutcome:
    """Apply consumption intents in registry order.

    The first claimant on a target wins. A later claim on a target that is
    already gone finds nothing, and an agent eaten earlier in this pass does
    not get to eat.
    """

    registry = world._registry
    outcome = MealOutcome()
    for agent, decision in zip(agents, decisions):
        meal = decision.meal
        if meal is None or not agent.alive:
            continue
        if not registry.remove(meal.target_id):
            continue
        agent.energy.gain(meal.energy)
        if meal.is_kill:
            outcome.kills += 1
        else:
            outcome.meals += 1
    return outcome


def drain_energy(world: World, agent: Agent, dt: float) -> float:
    cost = dt * agent.speed / world._config.energy.drain_speed_divisor
    return agent.energy.drain(cost)


def reproduce(world: World, agent: Agent) -> Agent | None:
    config = world._config
    energy_config = config.energy
    registry = world._registry
    if agent.energy.value < agent.energy.max * energy_config.reproduction_threshold:
        return None
    if config.max_population and len(registry) + registry.pending_births >= config.max_population:
        return None

    agent.energy.value *= 0.5
    if energy_config.offspring_energy_policy == "inherit_halved":
        child_energy = agent.energy.value
    else:
        child_energy = agent.energy.max * energy_config.offspring_energy_fraction

    forward = agent.forward
    child = Agent(
        id=registry.allocate_id(),
        species=agent.species,
        position=Vector2(agent.position) - forward * energy_config.offspring_offset,
        heading=agent.heading,
        speed=agent.base_speed,
        rotation_speed=agent.rotation_speed,
        vision_range=agent.vision_range,
        energy=Energy(value=min(child_energy, agent.energy.max), max=agent.energy.max),
        base_speed=agent.base_speed,
        generation=agent.generation + 1,
    )
    registry.queue_agent(child)
    return child


def apply_life_cycle(world: World, agent: Agent, dt: float) -> Tuple[int, int]:
    """Drain, reproduce, then mark starved agents for removal. Returns (births, starvations)."""
    births = 0
    agent.age += dt
    drain_energy(world, agent, dt)
    if reproduce(world, agent) is not None:
        births += 1
    if agent.energy.depleted and world._registry.remove(agent.id):
        logger.debug("%s %d starved at generation %d", agent.species.value, agent.id, agent.generation)
        return births, 1
    return births, 0
