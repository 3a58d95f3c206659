from __future__ import annotations

import logging
from typing import Dict, List, Set, Tuple

from .agent import Agent, Food

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Arena of live agents and food items keyed by a stable identity.

    Removals and spawns requested during a tick are deferred until `commit()`.
    A removal request invalidates the identity immediately for `is_live`, so a
    second request for the same id in the same tick finds nothing and is a
    no-op. Iteration order is insertion order, which is the registry order used
    to break ties between competing claims.
    """

    def __init__(self) -> None:
        self._agents: Dict[int, Agent] = {}
        self._food: Dict[int, Food] = {}
        self._pending_removals: Set[int] = set()
        self._agent_spawn_queue: List[Agent] = []
        self._food_spawn_queue: List[Food] = []
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._agents)

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return tuple(self._agents.values())

    @property
    def food(self) -> Tuple[Food, ...]:
        return tuple(self._food.values())

    @property
    def food_count(self) -> int:
        return len(self._food)

    @property
    def pending_births(self) -> int:
        return len(self._agent_spawn_queue)

    @property
    def pending_food(self) -> int:
        return len(self._food_spawn_queue)

    def allocate_id(self) -> int:
        entity_id = self._next_id
        self._next_id += 1
        return entity_id

    def get_agent(self, entity_id: int) -> Agent | None:
        if entity_id in self._pending_removals:
            return None
        return self._agents.get(entity_id)

    def get_food(self, entity_id: int) -> Food | None:
        if entity_id in self._pending_removals:
            return None
        return self._food.get(entity_id)

    def is_live(self, entity_id: int) -> bool:
        if entity_id in self._pending_removals:
            return False
        return entity_id in self._agents or entity_id in self._food

    def add_agent(self, agent: Agent) -> Agent:
        self._agents[agent.id] = agent
        return agent

    def add_food(self, food: Food) -> Food:
        self._food[food.id] = food
        return food

    def queue_agent(self, agent: Agent) -> None:
        self._agent_spawn_queue.append(agent)

    def queue_food(self, food: Food) -> None:
        self._food_spawn_queue.append(food)

    def remove(self, entity_id: int) -> bool:
        if not self.is_live(entity_id):
            return False
        self._pending_removals.add(entity_id)
        agent = self._agents.get(entity_id)
        if agent is not None:
            agent.alive = False
        return True

    def commit(self) -> Tuple[int, int]:
        """Apply deferred removals then deferred spawns. Returns (spawned agents, removed agents)."""
        removed_agents = 0
        for entity_id in self._pending_removals:
            if self._agents.pop(entity_id, None) is not None:
                removed_agents += 1
            else:
                self._food.pop(entity_id, None)
        self._pending_removals.clear()

        spawned = len(self._agent_spawn_queue)
        for agent in self._agent_spawn_queue:
            self._agents[agent.id] = agent
        self._agent_spawn_queue.clear()
        for food in self._food_spawn_queue:
            self._food[food.id] = food
        self._food_spawn_queue.clear()
        if spawned or removed_agents:
            logger.debug("Registry commit: +%d agents, -%d agents", spawned, removed_agents)
        return spawned, removed_agents

    def clear(self) -> None:
        self._agents.clear()
        self._food.clear()
        self._pending_removals.clear()
        self._agent_spawn_queue.clear()
        self._food_spawn_queue.clear()
        self._next_id = 0
