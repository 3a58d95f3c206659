from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.agent import Food
from ..core.config import FoodConfig
from ..core.rng import DeterministicRng

if TYPE_CHECKING:
    from ..core.registry import AgentRegistry

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Countdown that fires at most once per `tick`, then wraps and re-arms.

    A delta spanning several periods still produces a single firing; the
    remainder past the period boundary is kept so the long-run rate holds.
    """

    def __init__(self, period: float) -> None:
        self.period = period
        self.elapsed = 0.0

    def tick(self, dt: float) -> bool:
        self.elapsed += dt
        if self.elapsed < self.period:
            return False
        self.elapsed %= self.period
        return True

    def reset(self) -> None:
        self.elapsed = 0.0


class FoodSpawner:
    def __init__(self, config: FoodConfig, rng: DeterministicRng, half_width: float, half_height: float) -> None:
        self._config = config
        self._rng = rng
        self._half_width = half_width
        self._half_height = half_height
        self.timer = RepeatingTimer(config.spawn_period)

    def make_food(self, registry: AgentRegistry) -> Food:
        return Food(
            id=registry.allocate_id(),
            position=self._rng.next_point(self._half_width, self._half_height),
            value=self._config.value,
        )

    def seed_initial(self, registry: AgentRegistry) -> None:
        for _ in range(self._config.initial_food):
            registry.add_food(self.make_food(registry))

    def update(self, registry: AgentRegistry, dt: float) -> int:
        if not self.timer.tick(dt):
            return 0
        max_food = self._config.max_food
        if max_food and registry.food_count + registry.pending_food >= max_food:
            logger.debug("Food spawn skipped, %d items standing", registry.food_count)
            return 0
        registry.queue_food(self.make_food(registry))
        return 1

    def reset(self) -> None:
        self.timer.reset()
