from __future__ import annotations

from pytest import approx

from aviary.sim.core.config import FoodConfig, SimulationConfig
from aviary.sim.core.world import World
from aviary.sim.systems.food import RepeatingTimer


def test_timer_fires_twice_over_two_and_a_half_seconds():
    timer = RepeatingTimer(1.0)
    fired = [timer.tick(dt) for dt in [0.5, 0.5, 0.5, 0.5, 0.5]]
    assert fired == [False, True, False, True, False]
    assert timer.elapsed == approx(0.5)


def test_timer_fires_once_for_a_huge_delta():
    timer = RepeatingTimer(1.0)
    assert timer.tick(7.25)
    assert timer.elapsed == approx(0.25)
    assert not timer.tick(0.5)
    assert timer.tick(0.25)


def test_timer_with_uneven_deltas():
    timer = RepeatingTimer(1.0)
    fired = sum(timer.tick(dt) for dt in [0.7, 0.7, 0.7, 0.4])
    assert fired == 2


def test_world_spawns_food_within_bounds_on_timer():
    config = SimulationConfig(
        seed=21,
        half_width=50.0,
        half_height=20.0,
        herbivore_count=0,
        carnivore_count=0,
        food=FoodConfig(initial_food=0, spawn_period=1.0, value=7.5),
    )
    world = World(config)

    for _ in range(5):
        world.step(0.5)

    assert len(world.food) == 2
    for item in world.food:
        assert item.value == approx(7.5)
        assert -50.0 <= item.position.x <= 50.0
        assert -20.0 <= item.position.y <= 20.0


def test_max_food_caps_standing_food():
    config = SimulationConfig(
        herbivore_count=0,
        carnivore_count=0,
        food=FoodConfig(initial_food=3, spawn_period=0.1, max_food=3),
    )
    world = World(config)
    for _ in range(10):
        world.step(0.1)
    assert len(world.food) == 3
