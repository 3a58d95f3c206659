from __future__ import annotations

import math
from typing import Dict, Generic, List, Sequence, Tuple, TypeVar

from ..core.agent import AgentView, FoodView, Species
from ..core.spatial_grid import SpatialGrid

EntryT = TypeVar("EntryT", AgentView, FoodView)


class _Index(Generic[EntryT]):
    """Radius query over one candidate set, backed by a grid or a linear scan."""

    def __init__(self, entries: Sequence[EntryT], cell_size: float) -> None:
        self._entries = entries
        self._grid: SpatialGrid[EntryT] | None = None
        if cell_size > 0.0:
            self._grid = SpatialGrid(cell_size)
            for entry in entries:
                self._grid.insert(entry)
        self._scratch_entries: List[EntryT] = []
        self._scratch_dist: List[float] = []

    def query(self, x: float, y: float, radius: float, exclude_id: int | None) -> Tuple[List[Tuple[EntryT, float]], int]:
        if self._grid is not None:
            checked = self._grid.collect(x, y, radius, self._scratch_entries, self._scratch_dist, exclude_id)
            return list(zip(self._scratch_entries, self._scratch_dist)), checked
        found: List[Tuple[EntryT, float]] = []
        checked = 0
        for entry in self._entries:
            if exclude_id is not None and entry.id == exclude_id:
                continue
            checked += 1
            distance = math.hypot(entry.x - x, entry.y - y)
            if distance < radius:
                found.append((entry, distance))
        return found, checked


class Perception:
    """Answers "who can this agent see" against a start-of-tick snapshot.

    Entities are visible when strictly closer than the viewer's vision range.
    Same-species queries never return the viewer itself. Closest-entity queries
    pick the minimum distance and break exact ties on the lower id.
    """

    def __init__(self, agents: Sequence[AgentView], food: Sequence[FoodView], cell_size: float = 0.0) -> None:
        by_species: Dict[Species, List[AgentView]] = {species: [] for species in Species}
        for view in agents:
            by_species[view.species].append(view)
        self._agents = {species: _Index(views, cell_size) for species, views in by_species.items()}
        self._food = _Index(list(food), cell_size)
        self.checks = 0

    def agents_in_vision(self, viewer: AgentView, species: Species) -> List[Tuple[AgentView, float]]:
        found, checked = self._agents[species].query(viewer.x, viewer.y, viewer.vision_range, viewer.id)
        self.checks += checked
        return found

    def food_in_vision(self, viewer: AgentView) -> List[Tuple[FoodView, float]]:
        found, checked = self._food.query(viewer.x, viewer.y, viewer.vision_range, None)
        self.checks += checked
        return found

    def closest_agent(self, viewer: AgentView, species: Species) -> Tuple[AgentView, float] | None:
        return closest(self.agents_in_vision(viewer, species))

    def closest_food(self, viewer: AgentView) -> Tuple[FoodView, float] | None:
        return closest(self.food_in_vision(viewer))


def closest(candidates: List[Tuple[EntryT, float]]) -> Tuple[EntryT, float] | None:
    if not candidates:
        return None
    return min(candidates, key=lambda pair: (pair[1], pair[0].id))
