from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class SnapshotWorld:
    half_width: float
    half_height: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_time: float
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str


@dataclass(slots=True)
class Snapshot:
    """Read-only picture of the world after a tick; agents and food are plain dicts."""

    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    food: List[Dict[str, Any]]
    world: SnapshotWorld
    metadata: SnapshotMetadata

    def as_payload(self) -> Dict[str, Any]:
        return asdict(self)
