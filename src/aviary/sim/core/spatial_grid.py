from __future__ import annotations

import math
from typing import Dict, Generic, List, Protocol, Tuple, TypeVar


class _Located(Protocol):
    id: int
    x: float
    y: float


EntryT = TypeVar("EntryT", bound=_Located)


class SpatialGrid(Generic[EntryT]):
    def __init__(self, cell_size: float) -> None:
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[EntryT]] = {}
        self._offsets_cache: Dict[float, List[Tuple[int, int]]] = {}

    def build_neighbor_cell_offsets(self, radius: float) -> List[Tuple[int, int]]:
        cached = self._offsets_cache.get(radius)
        if cached is not None:
            return cached
        cell_range = int(math.ceil(radius / self._cell_size))
        offsets = [(dx, dy) for dx in range(-cell_range, cell_range + 1) for dy in range(-cell_range, cell_range + 1)]
        self._offsets_cache[radius] = offsets
        return offsets

    def insert(self, entry: EntryT) -> None:
        key = self._cell_key(entry.x, entry.y)
        self._cells.setdefault(key, []).append(entry)

    def collect(
        self,
        x: float,
        y: float,
        radius: float,
        out_entries: List[EntryT],
        out_dist: List[float],
        exclude_id: int | None = None,
    ) -> int:
        """
        Fill the buffers with entries strictly closer than `radius` and their distances.

        Returns the number of candidates examined.
        """

        out_entries.clear()
        out_dist.clear()
        if radius <= 0.0:
            return 0
        base_x, base_y = self._cell_key(x, y)
        radius_sq = radius * radius
        cells = self._cells
        checked = 0
        for dx, dy in self.build_neighbor_cell_offsets(radius):
            bucket = cells.get((base_x + dx, base_y + dy))
            if not bucket:
                continue
            for entry in bucket:
                if exclude_id is not None and entry.id == exclude_id:
                    continue
                checked += 1
                offset_x = entry.x - x
                offset_y = entry.y - y
                dist_sq = offset_x * offset_x + offset_y * offset_y
                if dist_sq < radius_sq:
                    out_entries.append(entry)
                    out_dist.append(math.sqrt(dist_sq))
        return checked

    def _cell_key(self, x: float, y: float) -> Tuple[int, int]:
        return (int(x // self._cell_size), int(y // self._cell_size))
