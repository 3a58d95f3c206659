from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from pygame.math import Vector2

from ..core.agent import Agent, AgentView, Species
from ..core.config import SimulationConfig
from ..utils.math2d import _blend_heading, _heading_from_vector, _safe_normalize_xy, _safe_normalize_xy_f
from .perception import Perception


@dataclass(slots=True)
class Meal:
    target_id: int
    energy: float
    is_kill: bool


@dataclass(slots=True)
class SteeringDecision:
    agent_id: int
    desired: Vector2 = field(default_factory=Vector2)
    speed: float = 0.0
    separating: bool = False
    meal: Meal | None = None


def compute_decision(config: SimulationConfig, view: AgentView, perception: Perception) -> SteeringDecision:
    """Sum every weighted steering contribution for one agent.

    Reads only the start-of-tick snapshot held by `perception`; nothing here
    mutates world state. Contributions are added without priority, so a heavy
    weight such as flight dominates by magnitude alone.
    """

    flocking = config.flocking
    species_config = config.herbivore if view.species == Species.HERBIVORE else config.carnivore
    decision = SteeringDecision(agent_id=view.id, speed=view.base_speed)
    desired_x = 0.0
    desired_y = 0.0

    flockmates = perception.agents_in_vision(view, view.species)
    if species_config.flocking and flockmates:
        flock_x, flock_y, decision.separating = flock(view, flockmates, config)
        desired_x += flock_x
        desired_y += flock_y

    if view.species == Species.HERBIVORE:
        forage_x, forage_y, decision.meal = forage(view, perception, config)
        flee_x, flee_y, decision.speed = flee(view, perception, config)
        desired_x += forage_x + flee_x
        desired_y += forage_y + flee_y
    else:
        pursue_x, pursue_y, decision.speed, decision.meal = pursue(view, perception, config)
        desired_x += pursue_x
        desired_y += pursue_y

    contain_x, contain_y = containment(view, config, force=flocking.home_when_alone and not flockmates)
    desired_x += contain_x
    desired_y += contain_y

    decision.desired = Vector2(desired_x, desired_y)
    return decision


def flock(view: AgentView, neighbors: List[Tuple[AgentView, float]], config: SimulationConfig) -> Tuple[float, float, bool]:
    flocking = config.flocking
    separation_x = 0.0
    separation_y = 0.0
    cohesion_x = 0.0
    cohesion_y = 0.0
    alignment_x = 0.0
    alignment_y = 0.0
    separating = False
    for other, distance in neighbors:
        offset_x = other.x - view.x
        offset_y = other.y - view.y
        if distance < flocking.separation_distance:
            separation_x += offset_x
            separation_y += offset_y
            separating = True
        cohesion_x += offset_x
        cohesion_y += offset_y
        alignment_x += other.forward_x
        alignment_y += other.forward_y

    separation_x, separation_y = _safe_normalize_xy_f(separation_x, separation_y)
    cohesion_x, cohesion_y = _safe_normalize_xy_f(cohesion_x, cohesion_y)
    alignment_x, alignment_y = _safe_normalize_xy_f(alignment_x, alignment_y)
    x = (
        alignment_x * flocking.alignment_weight
        + cohesion_x * flocking.cohesion_weight
        - separation_x * flocking.separation_weight
    )
    y = (
        alignment_y * flocking.alignment_weight
        + cohesion_y * flocking.cohesion_weight
        - separation_y * flocking.separation_weight
    )
    return x, y, separating


def forage(view: AgentView, perception: Perception, config: SimulationConfig) -> Tuple[float, float, Meal | None]:
    if view.energy >= view.max_energy * config.herbivore.satiation_fraction:
        return 0.0, 0.0, None
    nearest = perception.closest_food(view)
    if nearest is None:
        return 0.0, 0.0, None
    food, distance = nearest
    toward_x, toward_y = _safe_normalize_xy_f(food.x - view.x, food.y - view.y)
    weight = config.flocking.forage_weight
    meal = None
    if distance < config.flocking.capture_distance:
        meal = Meal(target_id=food.id, energy=food.value, is_kill=False)
    return toward_x * weight, toward_y * weight, meal


def flee(view: AgentView, perception: Perception, config: SimulationConfig) -> Tuple[float, float, float]:
    nearest = perception.closest_agent(view, Species.CARNIVORE)
    if nearest is None:
        return 0.0, 0.0, view.base_speed
    predator, _distance = nearest
    away_x, away_y = _safe_normalize_xy_f(view.x - predator.x, view.y - predator.y)
    weight = config.flocking.flight_weight
    return away_x * weight, away_y * weight, config.herbivore.flee_speed


def pursue(
    view: AgentView, perception: Perception, config: SimulationConfig
) -> Tuple[float, float, float, Meal | None]:
    carnivore = config.carnivore
    if view.energy >= view.max_energy * carnivore.satiation_fraction:
        return 0.0, 0.0, view.base_speed, None
    nearest = perception.closest_agent(view, Species.HERBIVORE)
    if nearest is None:
        return 0.0, 0.0, view.base_speed, None
    prey, distance = nearest
    predicted_x = prey.x + prey.forward_x * carnivore.prediction_distance
    predicted_y = prey.y + prey.forward_y * carnivore.prediction_distance
    toward_x, toward_y = _safe_normalize_xy_f(predicted_x - view.x, predicted_y - view.y)
    weight = config.flocking.pursuit_weight
    meal = None
    if distance < config.flocking.capture_distance:
        meal = Meal(target_id=prey.id, energy=config.energy.kill_energy, is_kill=True)
    return toward_x * weight, toward_y * weight, carnivore.hunt_speed, meal


def containment(view: AgentView, config: SimulationConfig, force: bool = False) -> Tuple[float, float]:
    out_of_bounds = abs(view.x) >= config.half_width or abs(view.y) >= config.half_height
    if not (out_of_bounds or force):
        return 0.0, 0.0
    to_center_x, to_center_y = _safe_normalize_xy_f(-view.x, -view.y)
    weight = config.flocking.containment_weight
    return to_center_x * weight, to_center_y * weight


def integrate(agent: Agent, decision: SteeringDecision, dt: float) -> None:
    """Turn toward the desired direction, then move forward at the decided speed."""
    desired = _safe_normalize_xy(decision.desired.x, decision.desired.y)
    agent.desired_direction = desired
    agent.separating = decision.separating
    agent.speed = decision.speed
    if desired.x != 0.0 or desired.y != 0.0:
        turn = agent.rotation_speed * dt
        agent.heading = _blend_heading(agent.heading, _heading_from_vector(desired), turn, max_step=turn)
    forward = agent.forward
    agent.position.update(
        agent.position.x + forward.x * agent.speed * dt,
        agent.position.y + forward.y * agent.speed * dt,
    )
