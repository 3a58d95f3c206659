from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Tuple

from pygame.math import Vector2

from .agent import Agent, AgentView, Energy, Food, FoodView, Species
from .clock import SimulationClock
from .config import SimulationConfig
from .registry import AgentRegistry
from .rng import DeterministicRng
from ..systems import lifecycle, metrics as metrics_system, steering
from ..systems.food import FoodSpawner
from ..systems.lifecycle import MealOutcome
from ..systems.perception import Perception
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)


class World:
    """Owns the registry, clock and food spawner and advances them one tick at a time.

    Each `step` runs a fixed pipeline:

    1. resolve the tick delta from the clock;
    2. freeze a snapshot of every live agent and food item;
    3. compute steering decisions for all agents from that snapshot only;
    4. integrate headings and positions;
    5. resolve meals and kills in registry order;
    6. drain energy, reproduce and mark the starved for removal;
    7. tick the food spawner;
    8. commit deferred removals and spawns;
    9. record metrics.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._clock = SimulationClock(config.time_step)
        self._registry = AgentRegistry()
        self._food_spawner = FoodSpawner(config.food, self._rng, config.half_width, config.half_height)
        self._metrics: TickMetrics | None = None
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return self._registry.agents

    @property
    def food(self) -> Tuple[Food, ...]:
        return self._registry.food

    @property
    def clock(self) -> SimulationClock:
        return self._clock

    @property
    def food_spawner(self) -> FoodSpawner:
        return self._food_spawner

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._registry.clear()
        self._rng.reset()
        self._clock.reset()
        self._food_spawner.reset()
        self._metrics = None
        self._bootstrap()

    def agent_views(self) -> Tuple[AgentView, ...]:
        return tuple(AgentView.of(agent) for agent in self._registry.agents)

    def food_views(self) -> Tuple[FoodView, ...]:
        return tuple(FoodView.of(item) for item in self._registry.food)

    def spawn_agent(
        self,
        species: Species,
        position: Vector2,
        heading: float | None = None,
        energy: float | None = None,
    ) -> Agent:
        species_config = self._config.herbivore if species == Species.HERBIVORE else self._config.carnivore
        energy_config = self._config.energy
        if heading is None:
            heading = self._rng.next_angle()
        if energy is None:
            energy = energy_config.max_energy * energy_config.initial_energy_fraction
        agent = Agent(
            id=self._registry.allocate_id(),
            species=species,
            position=Vector2(position),
            heading=heading,
            speed=species_config.base_speed,
            rotation_speed=species_config.rotation_speed,
            vision_range=species_config.vision_range,
            energy=Energy(value=min(energy, energy_config.max_energy), max=energy_config.max_energy),
            base_speed=species_config.base_speed,
        )
        return self._registry.add_agent(agent)

    def spawn_food(self, position: Vector2, value: float | None = None) -> Food:
        item = Food(
            id=self._registry.allocate_id(),
            position=Vector2(position),
            value=self._config.food.value if value is None else value,
        )
        return self._registry.add_food(item)

    def remove(self, entity_id: int) -> bool:
        return self._registry.remove(entity_id)

    def step(self, dt: float | None = None) -> TickMetrics:
        start = perf_counter()
        config = self._config
        registry = self._registry
        delta = self._clock.advance(dt)

        agents = registry.agents
        views = self.agent_views()
        perception = Perception(views, self.food_views(), config.perception_cell_size)
        decisions = [steering.compute_decision(config, view, perception) for view in views]

        for agent, decision in zip(agents, decisions):
            steering.integrate(agent, decision, delta)

        outcome: MealOutcome = lifecycle.resolve_meals(self, agents, decisions)

        births = 0
        starvations = 0
        for agent in agents:
            if not agent.alive:
                continue
            born, starved = lifecycle.apply_life_cycle(self, agent, delta)
            births += born
            starvations += starved

        self._food_spawner.update(registry, delta)
        _spawned, removed = registry.commit()

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._clock.tick,
            self._clock.elapsed,
            registry.agents,
            registry.food_count,
            births,
            starvations,
            outcome,
            perception.checks,
            elapsed_ms,
        )
        self._metrics = metrics
        if births or removed:
            logger.debug(
                "tick %d: births=%d starvations=%d kills=%d population=%d",
                metrics.tick,
                births,
                starvations,
                outcome.kills,
                metrics.population,
            )
        return metrics

    def snapshot(self) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._metrics_from_state()
        clock = self._clock
        sim_dt = clock.last_delta if clock.tick > 0 else clock.time_step
        return Snapshot(
            tick=self._clock.tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._registry.agents],
            food=[self._food_snapshot(item) for item in self._registry.food],
            world=SnapshotWorld(half_width=self._config.half_width, half_height=self._config.half_height),
            metadata=SnapshotMetadata(
                sim_time=self._clock.elapsed,
                sim_dt=sim_dt,
                tick_rate=0.0 if sim_dt <= 0 else 1.0 / sim_dt,
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
        )

    def _bootstrap(self) -> None:
        config = self._config
        roster: List[Species] = [Species.HERBIVORE] * config.herbivore_count + [Species.CARNIVORE] * config.carnivore_count
        if config.placement == "grid":
            positions = self._grid_positions(len(roster))
        else:
            positions = [self._rng.next_point(config.half_width, config.half_height) for _ in roster]
        for species, position in zip(roster, positions):
            self.spawn_agent(species, position)
        self._food_spawner.seed_initial(self._registry)
        logger.info(
            "World initialised: %d herbivores, %d carnivores, %d food (%s placement, seed %d)",
            config.herbivore_count,
            config.carnivore_count,
            self._registry.food_count,
            config.placement,
            config.seed,
        )

    def _grid_positions(self, count: int) -> List[Vector2]:
        if count == 0:
            return []
        width = self._config.half_width * 2.0
        height = self._config.half_height * 2.0
        columns = max(1, int(math.ceil(math.sqrt(count * width / height))))
        rows = int(math.ceil(count / columns))
        cell_w = width / columns
        cell_h = height / rows
        positions = []
        for index in range(count):
            row, column = divmod(index, columns)
            positions.append(
                Vector2(
                    -self._config.half_width + (column + 0.5) * cell_w,
                    -self._config.half_height + (row + 0.5) * cell_h,
                )
            )
        return positions

    def _metrics_from_state(self) -> TickMetrics:
        return metrics_system.create_metrics(
            self._clock.tick,
            self._clock.elapsed,
            self._registry.agents,
            self._registry.food_count,
            0,
            0,
            MealOutcome(),
            0,
            0.0,
        )

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        forward = agent.forward
        return {
            "id": agent.id,
            "species": agent.species.value,
            "x": agent.position.x,
            "y": agent.position.y,
            "heading": agent.heading,
            "forward_x": forward.x,
            "forward_y": forward.y,
            "speed": agent.speed,
            "energy": agent.energy.value,
            "max_energy": agent.energy.max,
            "vision_range": agent.vision_range,
            "desired_x": agent.desired_direction.x,
            "desired_y": agent.desired_direction.y,
            "separating": agent.separating,
            "generation": agent.generation,
            "age": agent.age,
        }

    @staticmethod
    def _food_snapshot(item: Food) -> Dict[str, Any]:
        return {"id": item.id, "x": item.position.x, "y": item.position.y, "value": item.value}
