from __future__ import annotations

import math
import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_angle(self) -> float:
        return self._random.uniform(-math.pi, math.pi)

    def next_point(self, half_width: float, half_height: float) -> Vector2:
        return Vector2(
            self._random.uniform(-half_width, half_width),
            self._random.uniform(-half_height, half_height),
        )
