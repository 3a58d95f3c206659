from __future__ import annotations

import math

from pygame.math import Vector2
from pytest import approx

from aviary.sim.core.agent import Agent, AgentView, Energy, FoodView, Species
from aviary.sim.core.config import FlockingConfig, SimulationConfig
from aviary.sim.systems import steering
from aviary.sim.systems.perception import Perception


def _view(
    agent_id: int,
    x: float,
    y: float,
    species: Species = Species.HERBIVORE,
    heading: float = math.pi / 2,
    energy: float = 50.0,
) -> AgentView:
    return AgentView(
        id=agent_id,
        species=species,
        x=x,
        y=y,
        forward_x=math.cos(heading),
        forward_y=math.sin(heading),
        energy=energy,
        max_energy=100.0,
        vision_range=100.0,
        base_speed=100.0,
    )


def _decide(config: SimulationConfig, views: list[AgentView], food: list[FoodView] | None = None, index: int = 0):
    perception = Perception(views, food or [])
    return steering.compute_decision(config, views[index], perception)


def test_agent_at_boundary_is_pulled_toward_center():
    config = SimulationConfig()
    decision = _decide(config, [_view(0, config.half_width, 0.0)])
    assert decision.desired.x == approx(-config.flocking.containment_weight)
    assert decision.desired.y == approx(0.0)


def test_agent_inside_bounds_alone_has_no_desire():
    decision = _decide(SimulationConfig(), [_view(0, 0.0, 0.0)])
    assert decision.desired == Vector2()
    assert decision.speed == approx(100.0)
    assert decision.meal is None


def test_lonely_homing_pulls_isolated_agent_inward():
    config = SimulationConfig(flocking=FlockingConfig(home_when_alone=True))
    decision = _decide(config, [_view(0, 100.0, 0.0)])
    assert decision.desired.x < 0.0


def test_separation_pushes_away_from_close_neighbor_only():
    config = SimulationConfig(
        flocking=FlockingConfig(cohesion_weight=0.0, alignment_weight=0.0, separation_weight=5.0),
    )
    close = _decide(config, [_view(0, 0.0, 0.0), _view(1, 10.0, 0.0)])
    assert close.separating
    assert close.desired.x == approx(-5.0)

    far = _decide(config, [_view(0, 0.0, 0.0), _view(1, 50.0, 0.0)])
    assert not far.separating
    assert far.desired == Vector2()


def test_cohesion_and_alignment_follow_neighbors():
    config = SimulationConfig(flocking=FlockingConfig(separation_weight=0.0, cohesion_weight=0.1, alignment_weight=1.0))
    decision = _decide(config, [_view(0, 0.0, 0.0, heading=0.0), _view(1, 0.0, 50.0, heading=0.0)])
    assert decision.desired.x == approx(1.0)
    assert decision.desired.y == approx(0.1)


def test_herbivore_flees_nearest_carnivore_at_flee_speed():
    config = SimulationConfig()
    views = [_view(0, 0.0, 0.0), _view(1, 30.0, 0.0, species=Species.CARNIVORE)]
    decision = _decide(config, views)
    assert decision.speed == approx(config.herbivore.flee_speed)
    assert decision.desired.x == approx(-config.flocking.flight_weight)


def test_herbivore_forages_and_eats_within_capture_range():
    config = SimulationConfig()
    food = [FoodView(id=9, x=0.0, y=15.0, value=20.0), FoodView(id=10, x=0.0, y=60.0, value=20.0)]
    decision = _decide(config, [_view(0, 0.0, 0.0, energy=10.0)], food)
    assert decision.desired.y == approx(config.flocking.forage_weight)
    assert decision.meal is not None
    assert decision.meal.target_id == 9
    assert not decision.meal.is_kill


def test_satiated_herbivore_ignores_food():
    decision = _decide(
        SimulationConfig(),
        [_view(0, 0.0, 0.0, energy=96.0)],
        [FoodView(id=9, x=0.0, y=5.0, value=20.0)],
    )
    assert decision.meal is None
    assert decision.desired == Vector2()


def test_carnivore_steers_toward_predicted_prey_position():
    config = SimulationConfig()
    prey = _view(1, 50.0, 0.0, heading=math.pi / 2)
    hunter = _view(0, 0.0, 0.0, species=Species.CARNIVORE)
    decision = _decide(config, [hunter, prey])
    predicted = Vector2(50.0, config.carnivore.prediction_distance).normalize()
    assert decision.speed == approx(config.carnivore.hunt_speed)
    assert decision.desired.x == approx(predicted.x)
    assert decision.desired.y == approx(predicted.y)
    assert decision.meal is None


def test_carnivore_captures_prey_in_range():
    config = SimulationConfig()
    decision = _decide(config, [_view(0, 0.0, 0.0, species=Species.CARNIVORE), _view(1, 10.0, 0.0)])
    assert decision.meal is not None
    assert decision.meal.is_kill
    assert decision.meal.target_id == 1
    assert decision.meal.energy == approx(config.energy.kill_energy)


def test_satiated_carnivore_cruises():
    config = SimulationConfig()
    decision = _decide(config, [_view(0, 0.0, 0.0, species=Species.CARNIVORE, energy=95.0), _view(1, 10.0, 0.0)])
    assert decision.meal is None
    assert decision.speed == approx(100.0)
    assert decision.desired == Vector2()


def _agent(heading: float, rotation_speed: float = 1.0, speed: float = 100.0) -> Agent:
    return Agent(
        id=0,
        species=Species.HERBIVORE,
        position=Vector2(),
        heading=heading,
        speed=speed,
        rotation_speed=rotation_speed,
        vision_range=100.0,
        energy=Energy(value=50.0, max=100.0),
        base_speed=speed,
    )


def test_integrate_turn_is_bounded_by_rotation_speed_and_dt():
    dt = 0.1
    for target in [0.05, 0.3, 1.5, -2.0, 3.0, math.pi]:
        agent = _agent(heading=0.0, rotation_speed=2.0)
        decision = steering.SteeringDecision(
            agent_id=0, desired=Vector2(math.cos(target), math.sin(target)) * 7.0, speed=100.0
        )
        steering.integrate(agent, decision, dt)
        assert abs(agent.heading) <= 2.0 * dt + 1e-9
        assert abs(agent.heading) <= 2.0 * dt * abs(target) + 1e-9
        assert agent.desired_direction.length() == approx(1.0)


def test_integrate_keeps_heading_for_zero_desire_and_moves_forward():
    agent = _agent(heading=math.pi / 2, speed=50.0)
    steering.integrate(agent, steering.SteeringDecision(agent_id=0, speed=50.0), 0.5)
    assert agent.heading == approx(math.pi / 2)
    assert agent.desired_direction == Vector2()
    assert agent.position.x == approx(0.0, abs=1e-9)
    assert agent.position.y == approx(25.0)


def test_large_gap_turns_exactly_rotation_speed_times_dt():
    agent = _agent(heading=0.0, rotation_speed=2.0)
    decision = steering.SteeringDecision(agent_id=0, desired=Vector2(math.cos(3.0), math.sin(3.0)), speed=100.0)
    steering.integrate(agent, decision, 0.1)
    assert agent.heading == approx(0.2)
