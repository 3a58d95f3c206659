from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2

from ..utils.math2d import _forward_from_heading


class Species(str, Enum):
    HERBIVORE = "Herbivore"
    CARNIVORE = "Carnivore"


@dataclass(slots=True)
class Energy:
    value: float
    max: float

    def gain(self, amount: float) -> float:
        self.value = min(self.value + amount, self.max)
        return self.value

    def drain(self, amount: float) -> float:
        self.value -= amount
        return self.value

    @property
    def depleted(self) -> bool:
        return self.value <= 0.0


@dataclass(slots=True)
class Agent:
    id: int
    species: Species
    position: Vector2
    heading: float
    speed: float
    rotation_speed: float
    vision_range: float
    energy: Energy
    base_speed: float = 0.0
    generation: int = 0
    age: float = 0.0
    alive: bool = True
    desired_direction: Vector2 = field(default_factory=Vector2)
    separating: bool = False

    @property
    def forward(self) -> Vector2:
        return _forward_from_heading(self.heading)


@dataclass(slots=True)
class Food:
    id: int
    position: Vector2
    value: float


@dataclass(frozen=True, slots=True)
class AgentView:
    """Start-of-tick copy of the agent state steering is allowed to read."""

    id: int
    species: Species
    x: float
    y: float
    forward_x: float
    forward_y: float
    energy: float
    max_energy: float
    vision_range: float
    base_speed: float

    @classmethod
    def of(cls, agent: Agent) -> "AgentView":
        return cls(
            id=agent.id,
            species=agent.species,
            x=agent.position.x,
            y=agent.position.y,
            forward_x=math.cos(agent.heading),
            forward_y=math.sin(agent.heading),
            energy=agent.energy.value,
            max_energy=agent.energy.max,
            vision_range=agent.vision_range,
            base_speed=agent.base_speed,
        )


@dataclass(frozen=True, slots=True)
class FoodView:
    id: int
    x: float
    y: float
    value: float

    @classmethod
    def of(cls, food: Food) -> "FoodView":
        return cls(id=food.id, x=food.position.x, y=food.position.y, value=food.value)
